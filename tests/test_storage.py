"""Tests for storage.py — shared JSON, JSONL and YAML I/O."""

import json
from dataclasses import dataclass

import pytest

from cherry_hydrate.storage import (
    append_jsonl,
    atomic_write,
    read_json,
    read_jsonl,
    read_yaml,
    write_json,
    write_yaml,
)


@dataclass(frozen=True, slots=True)
class Item:
    id: str
    name: str
    count: int = 0


def test_read_jsonl_missing_file(tmp_path):
    result = read_jsonl(tmp_path / "nope.jsonl", Item)

    assert result == []


def test_read_jsonl_filters_extra_fields(tmp_path):
    filepath = tmp_path / "items.jsonl"
    filepath.write_text(
        json.dumps({"id": "a", "name": "x", "count": 1, "extra": "ignored"}) + "\n"
    )

    result = read_jsonl(filepath, Item)

    assert result == [Item(id="a", name="x", count=1)]


def test_read_jsonl_skips_corrupt_lines(tmp_path):
    filepath = tmp_path / "items.jsonl"
    filepath.write_text(
        json.dumps({"id": "a", "name": "x"}) + "\n"
        "{broken\n"
        "\n"
        + json.dumps({"id": "b", "name": "y"}) + "\n"
    )

    result = read_jsonl(filepath, Item)

    assert [i.id for i in result] == ["a", "b"]


def test_append_jsonl_creates_parents(tmp_path):
    filepath = tmp_path / "nested" / "items.jsonl"

    append_jsonl(filepath, Item(id="a", name="x"))
    append_jsonl(filepath, Item(id="b", name="y", count=2))

    assert read_jsonl(filepath, Item) == [Item("a", "x"), Item("b", "y", 2)]


def test_json_roundtrip_and_empty_file(tmp_path):
    filepath = tmp_path / "state" / "data.json"
    assert read_json(filepath) == {}

    write_json(filepath, {"b": 1, "a": [1, 2]})

    assert read_json(filepath) == {"a": [1, 2], "b": 1}
    filepath.write_text("  \n")
    assert read_json(filepath) == {}


def test_read_json_rejects_non_object(tmp_path):
    filepath = tmp_path / "list.json"
    filepath.write_text("[1, 2]")

    with pytest.raises(ValueError):
        read_json(filepath)


def test_yaml_roundtrip(tmp_path):
    filepath = tmp_path / "users.yaml"
    assert read_yaml(filepath) == {}

    write_yaml(filepath, {"alice": {"email": "alice@example.com"}})

    assert read_yaml(filepath) == {"alice": {"email": "alice@example.com"}}


def test_atomic_write_leaves_no_temp_files(tmp_path):
    filepath = tmp_path / "out.txt"

    atomic_write(filepath, "first")
    atomic_write(filepath, "second")

    assert filepath.read_text() == "second"
    assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]
