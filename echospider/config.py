"""Crawler settings stored as a JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path

_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1

_JSON_KEYS = {
    "max_depth": "maxDepth",
    "max_workers": "maxWorkers",
    "timeout_sec": "timeoutSec",
    "respect_robots": "respectRobots",
    "user_agent": "userAgent",
    "output_format": "outputFormat",
}


@dataclass
class Config:
    """Settings for a crawl."""

    max_depth: int = 2
    max_workers: int = 10
    timeout_sec: int = 10
    respect_robots: bool = False
    user_agent: str = "EchoSpider/1.0"
    output_format: str = "console"

    def save(self, filename) -> None:
        """Write the settings to ``filename`` as indented JSON."""
        data = {key: getattr(self, attr) for attr, key in _JSON_KEYS.items()}
        with open(filename, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
            handle.write("\n")


def _field_types() -> dict[str, str]:
    return {f.name: f.type if isinstance(f.type, str) else f.type.__name__ for f in fields(Config)}


def _check_value(attr: str, key: str, value, type_name: str):
    if type_name == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key}: expected an integer, got {value!r}")
        if not _INT_MIN <= value <= _INT_MAX:
            raise ValueError(f"{key}: integer {value} out of range")
    elif type_name == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"{key}: expected a boolean, got {value!r}")
    elif type_name == "str":
        if not isinstance(value, str):
            raise ValueError(f"{key}: expected a string, got {value!r}")
    return value


def load_config(filename) -> Config:
    """Load settings from ``filename``; a missing file gives the defaults.

    Keys match case-insensitively and unknown keys are ignored. Malformed
    JSON or values of the wrong type raise ``ValueError``.
    """
    config = Config()
    path = Path(filename)
    if not path.exists():
        return config

    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ValueError("configuration must be a JSON object")

    by_lower = {key.lower(): attr for attr, key in _JSON_KEYS.items()}
    types = _field_types()
    for key, value in data.items():
        attr = by_lower.get(key.lower())
        if attr is None or value is None:
            continue
        setattr(config, attr, _check_value(attr, key, value, types[attr]))
    return config