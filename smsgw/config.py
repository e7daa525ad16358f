"""YAML configuration with typed, cached lookups and reload when the file changes."""

from __future__ import annotations

import logging
import math
import os
import re
import threading
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable

import yaml

_log = logging.getLogger(__name__)

_CONFIG_DIR = "config"
_EXTENSIONS = (".yaml", ".yml")

_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNIT_CHARS = set("nsuµμmh")
_OCTAL = re.compile(r"[+-]?0[0-7]+")
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


class ConfigError(Exception):
    """A configuration file could not be found, read or parsed."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``300ms``, ``-1.5h`` or ``2h45m``."""
    if not text:
        raise ValueError("invalid duration ''")
    body = text
    negative = body[0] == "-"
    if body[0] in "+-":
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration {text!r}")
    total = Decimal(0)
    pos = 0
    while pos < len(body):
        match = _DURATION_PART.match(body, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += Decimal(match.group(1)) * _UNIT_NS[match.group(2)]
        pos = match.end()
    micros = int(total / 1000)
    return timedelta(microseconds=-micros if negative else micros)


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        return format(Decimal(repr(value)), "f")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple, dict)):
        return ""
    return str(value)


def _parse_int(text: str) -> int:
    text = re.sub(r"(?<=\d)\.0+$", "", text)
    try:
        return int(text, 0)
    except ValueError:
        if _OCTAL.fullmatch(text):
            return int(text, 8)
        return 0


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return 0 if math.isnan(value) or math.isinf(value) else int(value)
    if isinstance(value, str):
        return _parse_int(value)
    return 0


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value in _TRUE
    return False


def _to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _to_duration(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        return timedelta(0)
    if isinstance(value, (int, float)):
        try:
            return timedelta(microseconds=int(Decimal(repr(value)) / 1000))
        except (InvalidOperation, ValueError, OverflowError):
            return timedelta(0)
    if isinstance(value, str):
        text = value if _DURATION_UNIT_CHARS & set(value) else value + "ns"
        try:
            return parse_duration(text)
        except (ValueError, InvalidOperation, OverflowError):
            return timedelta(0)
    return timedelta(0)


def _to_str_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [_to_str(item) for item in value]
    if isinstance(value, str):
        return value.split()
    return []


def _normalise(node: Any) -> Any:
    if isinstance(node, dict):
        return {str(key).lower(): _normalise(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_normalise(item) for item in node]
    return node


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"cannot read configuration {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"configuration {path} is not a mapping")
    return data


def _locate(directory: Path, name: str) -> Path:
    candidates = [directory / (name + ext) for ext in _EXTENSIONS]
    candidates.append(directory / name)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise ConfigError(f"configuration {name!r} not found in {directory}")


class YamlConfig:
    """Configuration values with case-insensitive, dotted keys.

    Converted values are cached per key; the cache is dropped on reload, which
    happens on :meth:`reload` or when the backing file's modification time changes.
    """

    def __init__(self, data: dict[str, Any] | None = None, path: str | os.PathLike[str] | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._data: dict[str, Any] = _normalise(data or {})
        self._cache: dict[tuple[str, str], Any] = {}
        self._mtime = self._stat()

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "YamlConfig":
        target = Path(path)
        return cls(_read_yaml(target), target)

    @property
    def path(self) -> Path | None:
        return self._path

    def _stat(self) -> int | None:
        if self._path is None:
            return None
        try:
            return self._path.stat().st_mtime_ns
        except OSError:
            return None

    def reload(self) -> None:
        """Read the file again and drop every cached value."""
        if self._path is None:
            raise ConfigError("configuration has no file to reload")
        data = _normalise(_read_yaml(self._path))
        with self._lock:
            self._data = data
            self._cache.clear()
            self._mtime = self._stat()
        _log.info("[%-9s] config file changed, reload!", "Config")

    def _refresh_if_changed(self) -> None:
        if self._path is None:
            return
        mtime = self._stat()
        if mtime is not None and mtime != self._mtime:
            try:
                self.reload()
            except ConfigError as exc:
                _log.error("config reload failed: %s", exc)
                with self._lock:
                    self._mtime = mtime

    def clone(self, path: str | os.PathLike[str]) -> "YamlConfig":
        """Load another file; a relative name is looked up beside this one."""
        target = Path(path)
        if not target.is_absolute():
            directory = self._path.parent if self._path is not None else Path.cwd()
            target = _locate(directory, str(path))
        return YamlConfig.from_file(target)

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.lower().split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _cached(self, kind: str, key: str, convert: Callable[[Any], Any]) -> Any:
        self._refresh_if_changed()
        with self._lock:
            slot = (kind, key)
            if slot not in self._cache:
                self._cache[slot] = convert(self._lookup(key))
            return self._cache[slot]

    def get(self, key: str) -> Any:
        return self._cached("raw", key, lambda value: value)

    def get_string(self, key: str) -> str:
        return self._cached("str", key, _to_str)

    def get_bool(self, key: str) -> bool:
        return self._cached("bool", key, _to_bool)

    def get_int(self, key: str) -> int:
        return self._cached("int", key, _to_int)

    def get_float(self, key: str) -> float:
        return self._cached("float", key, _to_float)

    def get_duration(self, key: str) -> timedelta:
        return self._cached("duration", key, _to_duration)

    def get_string_list(self, key: str) -> list[str]:
        return list(self._cached("list", key, _to_str_list))


def load_config(name: str = "config", base_path: str | os.PathLike[str] | None = None) -> YamlConfig:
    """Load ``<base_path>/config/<name>``, trying the YAML extensions first."""
    base = Path(base_path) if base_path is not None else Path.cwd()
    return YamlConfig.from_file(_locate(base / _CONFIG_DIR, name))