"""Fortune corpus and uniform random selection."""

import json
import logging
import random
from pathlib import Path
from typing import Iterable, Optional, Sequence

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CORPUS_PATH = Path(__file__).parent / "data" / "fortunes.yaml"


class EmptyCorpusError(RuntimeError):
    """Raised when a store is built from a corpus with no fortunes."""


class CorpusFormatError(ValueError):
    """Raised when a corpus file cannot be read as a list of fortunes."""


class FortuneStore:
    """Ordered, read-only list of fortunes with uniform random selection.

    The corpus is validated once, here: non-string entries are rejected,
    blank ones dropped. ``pick()`` never fails afterwards.
    """

    def __init__(self, corpus: Iterable[str], rng: Optional[random.Random] = None):
        self._corpus: tuple[str, ...] = tuple(_clean(list(corpus), "corpus"))
        if not self._corpus:
            raise EmptyCorpusError("Fortune corpus is empty")
        self._rng = rng or random.Random()
        logger.info(f"FortuneStore ready with {len(self._corpus)} fortunes")

    @property
    def corpus(self) -> tuple[str, ...]:
        return self._corpus

    def __len__(self) -> int:
        return len(self._corpus)

    def pick(self) -> str:
        """Return any fortune with equal probability (repeats allowed)."""
        return self._corpus[self._rng.randrange(len(self._corpus))]

    @classmethod
    def from_file(cls, path: Path | None = None, rng: Optional[random.Random] = None) -> "FortuneStore":
        """Build a store from a corpus file (bundled corpus when ``path`` is None)."""
        return cls(load_corpus(path or DEFAULT_CORPUS_PATH), rng=rng)


def load_corpus(path: Path) -> list[str]:
    """Load fortunes from a YAML, JSON or plain text file.

    YAML may hold a list or a mapping with a ``fortunes`` list. Plain text
    is one fortune per line. Blank entries are dropped.

    Raises:
        CorpusFormatError: If the file is not UTF-8 or does not contain a list of strings
    """
    path = Path(path)
    suffix = path.suffix.lower()

    try:
        with open(path, encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise CorpusFormatError(f"{path}: invalid YAML: {e}") from e
            elif suffix == ".json":
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    raise CorpusFormatError(f"{path}: invalid JSON: {e}") from e
            else:
                data = f.read().splitlines()
    except UnicodeDecodeError as e:
        raise CorpusFormatError(f"{path}: not UTF-8 text: {e}") from e

    if isinstance(data, dict):
        data = data.get("fortunes")
    if data is None:
        data = []
    if not isinstance(data, list):
        raise CorpusFormatError(f"{path}: expected a list of fortunes")

    fortunes = _clean(data, path)
    logger.debug(f"Loaded {len(fortunes)} fortunes from {path}")
    return fortunes


def _clean(entries: Sequence[object], source: Path | str) -> list[str]:
    fortunes = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, str):
            raise CorpusFormatError(f"{source}: entry {index} is not a string")
        text = entry.strip()
        if text:
            fortunes.append(text)
    return fortunes
