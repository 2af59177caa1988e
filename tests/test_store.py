import json
import random
from collections import Counter

import pytest

from fortune_cookie.fortunes.store import (
    DEFAULT_CORPUS_PATH,
    CorpusFormatError,
    EmptyCorpusError,
    FortuneStore,
    load_corpus,
)


def test_empty_corpus_fails_at_construction():
    with pytest.raises(EmptyCorpusError):
        FortuneStore([])


def test_pick_returns_corpus_members_with_repeats():
    store = FortuneStore(["A", "B", "C"], rng=random.Random(1))
    picks = [store.pick() for _ in range(300)]

    assert set(picks) == {"A", "B", "C"}
    # Uniform enough that every entry shows up regularly
    assert min(Counter(picks).values()) > 50


def test_single_fortune_corpus_always_returns_it():
    store = FortuneStore(["only"])
    assert all(store.pick() == "only" for _ in range(10))


def test_corpus_is_immutable_copy():
    source = ["A", "B"]
    store = FortuneStore(source)
    source.append("C")

    assert store.corpus == ("A", "B")
    assert len(store) == 2


def test_bundled_corpus_loads():
    store = FortuneStore.from_file()
    assert len(store) >= 1
    assert DEFAULT_CORPUS_PATH.exists()


def test_load_yaml_mapping_and_list(tmp_path):
    mapping = tmp_path / "a.yaml"
    mapping.write_text("fortunes:\n  - Первое\n  - '  '\n  - Второе\n", encoding="utf-8")
    plain = tmp_path / "b.yml"
    plain.write_text("- one\n- two\n", encoding="utf-8")

    assert load_corpus(mapping) == ["Первое", "Второе"]
    assert load_corpus(plain) == ["one", "two"]


def test_load_json_and_text(tmp_path):
    data = tmp_path / "f.json"
    data.write_text(json.dumps(["x", "y"]), encoding="utf-8")
    text = tmp_path / "f.txt"
    text.write_text("first\n\nsecond\n", encoding="utf-8")

    assert load_corpus(data) == ["x", "y"]
    assert load_corpus(text) == ["first", "second"]


def test_blank_only_file_yields_empty_store_error(tmp_path):
    path = tmp_path / "blank.txt"
    path.write_text("\n  \n", encoding="utf-8")

    with pytest.raises(EmptyCorpusError):
        FortuneStore.from_file(path)


@pytest.mark.parametrize("content", ["fortunes: 5\n", "- 1\n- two\n", "key: [unclosed\n"])
def test_malformed_yaml_raises_format_error(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CorpusFormatError):
        load_corpus(path)


def test_invalid_json_raises_format_error(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CorpusFormatError):
        load_corpus(path)


def test_blank_entries_are_dropped_and_all_blank_is_empty():
    assert FortuneStore(["  A ", "", "B"]).corpus == ("A", "B")

    with pytest.raises(EmptyCorpusError):
        FortuneStore(["", "   "])


def test_non_string_entries_rejected_at_construction():
    with pytest.raises(CorpusFormatError):
        FortuneStore(["A", 7])


def test_non_utf8_file_raises_format_error(tmp_path):
    for name in ("f.txt", "f.yaml", "f.json"):
        path = tmp_path / name
        path.write_bytes(b"\xff\xfe\xfa bad\n")

        with pytest.raises(CorpusFormatError):
            load_corpus(path)
