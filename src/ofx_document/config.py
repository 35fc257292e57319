"""Configuration utilities and dataclasses for the OFX document parser."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH: Path = Path.home() / '.config/ofx_document.toml'
"""Default location for an optional user provided TOML configuration file."""

BASE_SETTINGS: dict[str, Any] = {
    'encoding': None,
    'accept_collapsed_header': True,
    'keep_timezone': False,
}
"""Default settings merged with any local overrides."""


@dataclass(frozen=True, slots=True)
class ParserSettings:
    """Immutable options shared by every parse call of a parser instance.

    Attributes:
        encoding: Text encoding used to decode byte streams. ``None`` selects
            the platform default.
        accept_collapsed_header: Accept legacy headers written on a single
            line without separators.
        keep_timezone: Attach the bracketed OFX offset to decoded timestamps
            instead of returning naive local times.
    """

    encoding: str | None = None
    accept_collapsed_header: bool = True
    keep_timezone: bool = False


def _prepare_settings(raw: Mapping[str, Any]) -> ParserSettings:
    """Convert a raw dictionary into ``ParserSettings`` with proper types."""

    encoding = raw.get('encoding')
    return ParserSettings(
        encoding=str(encoding) if encoding else None,
        accept_collapsed_header=bool(raw.get('accept_collapsed_header', True)),
        keep_timezone=bool(raw.get('keep_timezone', False)),
    )


def load_settings(path: Path | None = None) -> ParserSettings:
    """Load ``ParserSettings`` from the provided TOML file path."""

    config_path = (path or DEFAULT_CONFIG_PATH).expanduser()
    if not config_path.is_file():
        raise FileNotFoundError(f'Configuration file not found: {config_path}')

    with config_path.open('rb') as handle:
        overrides = tomllib.load(handle)

    section = overrides.get('ofx_document', overrides)
    unknown = sorted(set(section) - set(BASE_SETTINGS))
    if unknown:
        raise ValueError(f'Unknown configuration keys in {config_path}: {", ".join(unknown)}')
    merged = {**BASE_SETTINGS, **section}
    return _prepare_settings(merged)
