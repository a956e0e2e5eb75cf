"""Shared JSON, JSONL and YAML I/O for persistent data files."""

import dataclasses
import json
import logging
import os
import tempfile
from dataclasses import asdict
from pathlib import Path
from typing import Any, TypeVar

import yaml

from cherry_hydrate.config import DATA_DIR as DATA_DIR
from cherry_hydrate.config import TZ as TZ

STATE_DIR = DATA_DIR / "state"

T = TypeVar("T")
log = logging.getLogger(__name__)


def atomic_write(filepath: Path, content: str) -> None:
    """Write via tempfile + os.replace so readers never see a partial file."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        os.write(fd, content.encode())
    finally:
        os.close(fd)
    os.replace(tmp, filepath)


def read_json(filepath: Path) -> dict[str, Any]:
    """Missing or empty file reads as an empty mapping."""
    if not filepath.exists():
        return {}
    text = filepath.read_text().strip()
    if not text:
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{filepath} does not hold a JSON object")
    return data


def write_json(filepath: Path, data: dict[str, Any]) -> None:
    atomic_write(filepath, json.dumps(data, indent=2, sort_keys=True) + "\n")


def read_yaml(filepath: Path) -> dict[str, Any]:
    """Missing file reads as an empty mapping."""
    if not filepath.exists():
        return {}
    data = yaml.safe_load(filepath.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{filepath} is not a YAML mapping")
    return data


def write_yaml(filepath: Path, data: dict[str, Any]) -> None:
    atomic_write(filepath, yaml.safe_dump(data, sort_keys=True, allow_unicode=True))


def read_jsonl(filepath: Path, cls: type[T]) -> list[T]:
    """Skips corrupt lines; filters to known dataclass fields for forward compatibility."""
    if not filepath.exists():
        return []
    fields = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    result: list[T] = []
    for line in filepath.read_text().splitlines():
        stripped = line.strip()
        if not stripped or not stripped.startswith("{"):
            continue
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError:
            log.warning("Skipping corrupt line in %s", filepath)
            continue
        result.append(cls(**{k: v for k, v in data.items() if k in fields}))
    return result


def append_jsonl(filepath: Path, item: T) -> None:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with filepath.open("a") as f:
        f.write(json.dumps(asdict(item)) + "\n")  # type: ignore[call-overload]
