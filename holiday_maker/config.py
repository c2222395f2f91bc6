from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
import os

import yaml

from .booking import BOOKING_DATE_FORMAT

DEFAULT_DATA_DIR = "data"
CONFIG_ENV_VAR = "HOLIDAY_MAKER_CONFIG"
DATA_DIR_ENV_VAR = "HOLIDAY_MAKER_DATA_DIR"
_KNOWN_KEYS = {"data_dir", "date_format"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    date_format: str = BOOKING_DATE_FORMAT


def load_settings(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from an optional YAML file, then environment overrides.

    The file is taken from ``path`` or ``$HOLIDAY_MAKER_CONFIG``; a missing
    file falls back to defaults. ``$HOLIDAY_MAKER_DATA_DIR`` always wins for
    the data directory.
    """
    env = os.environ if environ is None else environ
    config_path = path or env.get(CONFIG_ENV_VAR)

    values: dict[str, Any] = {}
    if config_path:
        values = _read_config_file(Path(config_path))

    data_dir = env.get(DATA_DIR_ENV_VAR) or values.get("data_dir") or DEFAULT_DATA_DIR
    date_format = values.get("date_format") or BOOKING_DATE_FORMAT
    if not isinstance(date_format, str):
        raise ValueError("date_format must be a string")

    return Settings(data_dir=Path(str(data_dir)), date_format=date_format)


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"config file must contain a mapping: {path}")

    unknown = sorted(set(payload) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(str(key) for key in unknown)}")
    return payload
