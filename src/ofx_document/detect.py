"""Input sniffing helpers run on raw statement text before any parsing."""

from __future__ import annotations

from ofx_document.errors import ErrorKind, OFXParseError
from ofx_document.models import AccountType, SourceFormat

SGML_MARKER = 'OFXHEADER:100'
"""Literal token that only appears in the plaintext header of legacy OFX."""

ACCOUNT_MARKERS: tuple[tuple[str, AccountType], ...] = (
    ('<CREDITCARDMSGSRSV1>', AccountType.CREDIT_CARD),
    ('<BANKMSGSRSV1>', AccountType.BANK),
)
"""Message-set container tags checked in order to infer the account type."""


def detect_format(text: str) -> SourceFormat:
    """Infer the ``SourceFormat`` of ``text`` from the legacy header marker."""

    return SourceFormat.SGML if SGML_MARKER in text else SourceFormat.XML


def detect_account_type(text: str) -> AccountType:
    """Return the account type whose message-set container occurs in ``text``."""

    for marker, account_type in ACCOUNT_MARKERS:
        if marker in text:
            return account_type
    raise OFXParseError(
        ErrorKind.UNSUPPORTED_ACCOUNT_TYPE,
        'Unsupported account type: no bank or credit card message set found',
        field='account_type',
    )
