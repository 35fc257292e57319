"""Location of statement sections for each supported account type."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ofx_document.errors import ErrorKind, OFXParseError
from ofx_document.models import AccountType

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from ofx_document.markup import Node


class Section(str, Enum):
    """Logical sections of a statement response."""

    SIGNON = 'signon'
    ACCOUNT_INFO = 'account_info'
    TRANSACTIONS = 'transactions'
    BALANCE = 'balance'
    CURRENCY = 'currency'


SIGNON_PATH = 'OFX/SIGNONMSGSRSV1/SONRS'

STATEMENT_ROOTS: dict[AccountType, tuple[str, str]] = {
    AccountType.BANK: ('OFX/BANKMSGSRSV1/STMTTRNRS/STMTRS', 'BANKACCTFROM'),
    AccountType.CREDIT_CARD: ('OFX/CREDITCARDMSGSRSV1/CCSTMTTRNRS/CCSTMTRS', 'CCACCTFROM'),
}
"""Statement response root and account aggregate per account type."""

SECTION_SUFFIXES: dict[Section, str] = {
    Section.BALANCE: '',
    Section.TRANSACTIONS: '/BANKTRANLIST',
    Section.CURRENCY: '/CURDEF',
}


def _build_paths() -> dict[tuple[AccountType, Section], str]:
    paths: dict[tuple[AccountType, Section], str] = {}
    for account_type, (root, account_tag) in STATEMENT_ROOTS.items():
        paths[(account_type, Section.SIGNON)] = SIGNON_PATH
        paths[(account_type, Section.ACCOUNT_INFO)] = f'{root}/{account_tag}'
        for section, suffix in SECTION_SUFFIXES.items():
            paths[(account_type, section)] = root + suffix
    return paths


PATHS: dict[tuple[AccountType, Section], str] = _build_paths()
"""Static ``(account type, section)`` to path table; AP and AR have no entries."""


def resolve_path(account_type: AccountType, section: Section) -> str:
    """Return the slash separated path of ``section`` for ``account_type``."""

    try:
        return PATHS[(account_type, section)]
    except KeyError as exc:
        raise OFXParseError(
            ErrorKind.UNSUPPORTED_ACCOUNT_TYPE,
            f'Account type not supported: {account_type.name}',
            field='account_type',
            raw=account_type.name,
        ) from exc


def select(root: Node, path: str) -> Node | None:
    """Resolve an absolute ``path`` whose first segment names ``root``."""

    head, _sep, rest = path.partition('/')
    if head != root.tag:
        return None
    return root.find(rest) if rest else root


def select_section(root: Node, account_type: AccountType, section: Section) -> Node | None:
    """Return the node of ``section`` in the tree rooted at ``root``, if present."""

    return select(root, resolve_path(account_type, section))
