"""OFX statement parser package."""

from __future__ import annotations

from importlib import metadata as _metadata

from ofx_document.errors import ErrorKind, OFXParseError
from ofx_document.models import Account, AccountType, Balance, Document, SignOn, Transaction
from ofx_document.parser import OFXDocumentParser, parse, parse_file, parse_stream

__all__ = [
    'Account',
    'AccountType',
    'Balance',
    'Document',
    'ErrorKind',
    'OFXDocumentParser',
    'OFXParseError',
    'SignOn',
    'Transaction',
    'parse',
    'parse_file',
    'parse_stream',
]


def __getattr__(name: str) -> str:
    """Provide dynamic attributes such as ``__version__`` from package metadata."""

    if name == '__version__':
        return _metadata.version('ofx-document')
    raise AttributeError(name)
