"""Validation and removal of the plaintext OFX 1.x header block."""

from __future__ import annotations

import logging
import re

from ofx_document.errors import ErrorKind, OFXParseError

LOGGER = logging.getLogger(__name__)

EXPECTED_HEADER: tuple[tuple[str, str], ...] = (
    ('OFXHEADER', '100'),
    ('DATA', 'OFXSGML'),
    ('VERSION', '102'),
    ('SECURITY', 'NONE'),
    ('ENCODING', 'USASCII'),
    ('CHARSET', '1252'),
    ('COMPRESSION', 'NONE'),
    ('OLDFILEUID', 'NONE'),
)
"""Header fields checked in order, each against one exact value."""

COLLAPSED_HEADER = ''.join(f'{name}:{value}' for name, value in EXPECTED_HEADER) + 'NEWFILEUID:NONE'
"""Single-line header emitted by producers that drop the line separators."""

_LINE_SPLIT = re.compile(r'[\r\n]+')

OFXHeader = dict[str, str]


def split_header(text: str) -> tuple[str, str]:
    """Split ``text`` at the first ``<`` into ``(header, body)``."""

    start = text.find('<')
    if start == -1:
        raise OFXParseError(ErrorKind.HEADER_FORMAT, 'No OFX markup found after the header', field='OFXHEADER')
    return text[:start].lstrip('\ufeff'), text[start:].strip()


def header_lines(header: str) -> list[str]:
    """Return the non-empty header lines."""

    return [line.strip() for line in _LINE_SPLIT.split(header) if line.strip()]


def validate_header(lines: list[str], *, accept_collapsed: bool = True) -> OFXHeader:
    """Check ``lines`` against ``EXPECTED_HEADER`` and return the parsed fields."""

    if accept_collapsed and lines and lines[0] == COLLAPSED_HEADER:
        LOGGER.debug('Accepting single-line OFX header')
        collapsed = dict(EXPECTED_HEADER)
        collapsed['NEWFILEUID'] = 'NONE'
        return collapsed

    values: OFXHeader = {}
    for index, (name, expected) in enumerate(EXPECTED_HEADER):
        expected_line = f'{name}:{expected}'
        actual = lines[index] if index < len(lines) else ''
        if actual != expected_line:
            raise OFXParseError(
                ErrorKind.HEADER_FORMAT,
                f'Unsupported OFX header {name}: got {actual!r}, expected {expected_line!r}',
                field=name,
                raw=actual,
                expected=expected_line,
            )
        values[name] = expected

    for extra in lines[len(EXPECTED_HEADER) :]:
        key, sep, value = extra.partition(':')
        if sep:
            values[key] = value
    return values


def parse_header(text: str, *, accept_collapsed: bool = True) -> tuple[OFXHeader, str]:
    """Validate the legacy header of ``text`` and return ``(header, body)``."""

    header, body = split_header(text)
    values = validate_header(header_lines(header), accept_collapsed=accept_collapsed)
    return values, body


def strip_header(text: str, *, accept_collapsed: bool = True) -> str:
    """Validate and remove the legacy header, returning the trimmed markup."""

    _values, body = parse_header(text, accept_collapsed=accept_collapsed)
    return body
