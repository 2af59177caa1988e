"""Fortune corpus loading and selection."""

from fortune_cookie.fortunes.store import (
    FortuneStore,
    EmptyCorpusError,
    CorpusFormatError,
    load_corpus,
    DEFAULT_CORPUS_PATH,
)

__all__ = [
    "FortuneStore",
    "EmptyCorpusError",
    "CorpusFormatError",
    "load_corpus",
    "DEFAULT_CORPUS_PATH",
]
