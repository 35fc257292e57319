"""Locale-independent decoding of OFX field values."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

from ofx_document.errors import ErrorKind, OFXParseError
from ofx_document.models import BankAccountType, CorrectionAction, TransactionType

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Mapping

    from ofx_document.markup import Node

EnumT = TypeVar('EnumT', bound=Enum)

AMOUNT_PATTERN = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$')
"""Plain decimal: optional sign, ``.`` as the only separator, no grouping."""

DATETIME_PATTERN = re.compile(
    r"""
    ^(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})
    (?:(?P<hour>\d{2})(?P<minute>\d{2})(?P<second>\d{2})(?:\.(?P<fraction>\d+))?)?
    (?:\s*\[\s*(?P<offset>[+-]?\d{1,2}(?:\.\d+)?)(?::(?P<tzname>[^\]]*))?\])?$
    """,
    re.VERBOSE,
)
"""``YYYYMMDD[HHMMSS[.XXX]][[offset:TZ]]``."""

TRANSACTION_TYPES: dict[str, TransactionType] = {member.value: member for member in TransactionType}
CORRECTION_ACTIONS: dict[str, CorrectionAction] = {
    member.value: member for member in CorrectionAction if member is not CorrectionAction.NA
}
BANK_ACCOUNT_TYPES: dict[str, BankAccountType] = {
    member.value: member for member in BankAccountType if member is not BankAccountType.NA
}


def find_text(node: Node, path: str) -> str | None:
    """Return the text of the first descendant of ``node`` matching ``path``."""

    found = node.search(path)
    if found is None or found.text is None:
        return None
    text = found.text.strip()
    return text or None


def decode_amount(text: str | None, field: str) -> Decimal:
    """Decode ``text`` as an invariant-culture decimal amount."""

    cleaned = (text or '').strip()
    if not AMOUNT_PATTERN.match(cleaned):
        raise OFXParseError(
            ErrorKind.AMOUNT_PARSE,
            f'Unrecognized amount in {field}: {text!r}',
            field=field,
            raw=text,
        )
    return Decimal(cleaned)


def decode_datetime(text: str | None, field: str, *, keep_timezone: bool = False) -> datetime:
    """Decode an OFX date/time token.

    The eight digit date is mandatory; time, fractional seconds and the
    bracketed timezone are optional. The timezone is dropped unless
    ``keep_timezone`` is set, in which case the offset becomes a fixed
    ``tzinfo``.
    """

    cleaned = (text or '').strip()
    match = DATETIME_PATTERN.match(cleaned)
    if match is None:
        raise OFXParseError(ErrorKind.DATE_PARSE, f'Unrecognized date in {field}: {text!r}', field=field, raw=text)

    parts = match.groupdict()
    fraction = (parts['fraction'] or '')[:6].ljust(6, '0')
    try:
        moment = datetime(
            int(parts['year']),
            int(parts['month']),
            int(parts['day']),
            int(parts['hour'] or 0),
            int(parts['minute'] or 0),
            int(parts['second'] or 0),
            int(fraction),
        )
        if keep_timezone and parts['offset'] is not None:
            offset = timedelta(hours=float(parts['offset']))
            tzname = (parts['tzname'] or '').strip()
            moment = moment.replace(tzinfo=timezone(offset, tzname) if tzname else timezone(offset))
    except ValueError as exc:
        raise OFXParseError(ErrorKind.DATE_PARSE, f'Invalid date in {field}: {text!r}', field=field, raw=text) from exc
    return moment


def decode_optional_datetime(text: str | None, field: str, *, keep_timezone: bool = False) -> datetime | None:
    """Like ``decode_datetime`` but returns ``None`` for absent values."""

    if text is None:
        return None
    return decode_datetime(text, field, keep_timezone=keep_timezone)


def decode_enum(
    table: Mapping[str, EnumT],
    text: str | None,
    field: str,
    *,
    kind: ErrorKind = ErrorKind.UNKNOWN_ENUM_VALUE,
) -> EnumT:
    """Look ``text`` up in the closed ``table``; unknown tokens raise ``kind``."""

    token = (text or '').strip()
    try:
        return table[token]
    except KeyError as exc:
        raise OFXParseError(kind, f'Unknown {field} value: {token!r}', field=field, raw=token) from exc
