"""Typed OFX document model produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from ofx_document.errors import ErrorKind, OFXParseError

UNSET_DATETIME: datetime = datetime.min
"""Sentinel timestamp used when an optional balance date is absent."""


class SourceFormat(str, Enum):
    """Transport variants of an OFX statement."""

    SGML = 'sgml'
    XML = 'xml'


class AccountType(str, Enum):
    """Account categories named by OFX; only BANK and CREDIT_CARD are supported."""

    BANK = 'bank'
    CREDIT_CARD = 'credit_card'
    AP = 'ap'
    AR = 'ar'

    @property
    def supported(self) -> bool:
        return self in SUPPORTED_ACCOUNT_TYPES


SUPPORTED_ACCOUNT_TYPES: frozenset[AccountType] = frozenset({AccountType.BANK, AccountType.CREDIT_CARD})


class BankAccountType(str, Enum):
    """``ACCTTYPE`` values of a bank account aggregate."""

    NA = 'NA'
    CHECKING = 'CHECKING'
    SAVINGS = 'SAVINGS'
    MONEYMRKT = 'MONEYMRKT'
    CREDITLINE = 'CREDITLINE'
    CD = 'CD'


class TransactionType(str, Enum):
    """``TRNTYPE`` values of a statement transaction."""

    CREDIT = 'CREDIT'
    DEBIT = 'DEBIT'
    INT = 'INT'
    DIV = 'DIV'
    FEE = 'FEE'
    SRVCHG = 'SRVCHG'
    DEP = 'DEP'
    ATM = 'ATM'
    POS = 'POS'
    XFER = 'XFER'
    CHECK = 'CHECK'
    PAYMENT = 'PAYMENT'
    CASH = 'CASH'
    DIRECTDEP = 'DIRECTDEP'
    DIRECTDEBIT = 'DIRECTDEBIT'
    REPEATPMT = 'REPEATPMT'
    HOLD = 'HOLD'
    OTHER = 'OTHER'


class CorrectionAction(str, Enum):
    """``CORRECTACTION`` values; ``NA`` when the transaction corrects nothing."""

    NA = 'NA'
    DELETE = 'DELETE'
    REPLACE = 'REPLACE'


def _require_supported(account_type: AccountType) -> None:
    if not account_type.supported:
        raise OFXParseError(
            ErrorKind.UNSUPPORTED_ACCOUNT_TYPE,
            f'Account type not supported: {account_type.name}',
            field='account_type',
            raw=account_type.name,
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True, slots=True)
class SignOn:
    """Sign-on response metadata (``SONRS``)."""

    status_code: str | None = None
    status_severity: str | None = None
    server_date: datetime | None = None
    language: str | None = None
    fi_org: str | None = None
    fi_id: str | None = None
    intu_bid: str | None = None


@dataclass(frozen=True, slots=True)
class Account:
    """Statement account (or transfer counter-party).

    Bank-only fields are forced to their not-applicable values unless
    ``account_type`` is ``AccountType.BANK``.
    """

    account_id: str | None
    account_type: AccountType
    account_key: str | None = None
    bank_id: str | None = None
    branch_id: str | None = None
    bank_account_type: BankAccountType = BankAccountType.NA

    def __post_init__(self) -> None:
        _require_supported(self.account_type)
        if self.account_type is not AccountType.BANK:
            object.__setattr__(self, 'bank_id', None)
            object.__setattr__(self, 'branch_id', None)
            object.__setattr__(self, 'bank_account_type', BankAccountType.NA)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            'account_id': self.account_id,
            'account_key': self.account_key,
            'account_type': self.account_type.value,
        }
        if self.account_type is AccountType.BANK:
            payload['bank_id'] = self.bank_id
            payload['branch_id'] = self.branch_id
            payload['bank_account_type'] = self.bank_account_type.value
        return payload


@dataclass(frozen=True, slots=True)
class Balance:
    """Ledger balance and, when reported, the available balance."""

    ledger_balance: Decimal
    ledger_balance_date: datetime
    available_balance: Decimal = Decimal('0')
    available_balance_date: datetime = UNSET_DATETIME
    has_available_balance: bool = False


@dataclass(frozen=True, slots=True)
class Transaction:
    """Single ``STMTTRN`` record with its effective currency resolved."""

    transaction_type: TransactionType
    date: datetime
    amount: Decimal
    transaction_id: str
    currency: str
    user_date: datetime | None = None
    available_date: datetime | None = None
    corrected_id: str | None = None
    correction_action: CorrectionAction = CorrectionAction.NA
    server_id: str | None = None
    check_number: str | None = None
    reference_number: str | None = None
    sic: str | None = None
    payee_id: str | None = None
    name: str | None = None
    memo: str | None = None
    counterparty: Account | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            'transaction_type': self.transaction_type.value,
            'date': self.date.isoformat(),
            'user_date': _iso(self.user_date),
            'available_date': _iso(self.available_date),
            'amount': str(self.amount),
            'transaction_id': self.transaction_id,
            'currency': self.currency,
            'correction_action': self.correction_action.value,
            'name': self.name,
            'memo': self.memo,
        }
        optional = {
            'corrected_id': self.corrected_id,
            'server_id': self.server_id,
            'check_number': self.check_number,
            'reference_number': self.reference_number,
            'sic': self.sic,
            'payee_id': self.payee_id,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        if self.counterparty is not None:
            payload['counterparty'] = self.counterparty.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class Document:
    """Fully assembled OFX statement."""

    account_type: AccountType
    currency: str
    sign_on: SignOn
    account: Account
    balance: Balance
    statement_start: datetime
    statement_end: datetime
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _require_supported(self.account_type)

    def summary(self) -> str:
        """Return a human readable summary string for logging."""

        count = len(self.transactions)
        return f'{self.account_type.value} account {self.account.account_id}: {count} transactions in {self.currency}'

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly view (amounts as strings, ISO timestamps)."""

        balance = self.balance
        return {
            'account_type': self.account_type.value,
            'currency': self.currency,
            'sign_on': {
                'status_code': self.sign_on.status_code,
                'status_severity': self.sign_on.status_severity,
                'server_date': _iso(self.sign_on.server_date),
                'language': self.sign_on.language,
                'fi_org': self.sign_on.fi_org,
                'fi_id': self.sign_on.fi_id,
                'intu_bid': self.sign_on.intu_bid,
            },
            'account': self.account.to_dict(),
            'balance': {
                'ledger_balance': str(balance.ledger_balance),
                'ledger_balance_date': balance.ledger_balance_date.isoformat(),
                'available_balance': str(balance.available_balance),
                'available_balance_date': (
                    balance.available_balance_date.isoformat() if balance.has_available_balance else None
                ),
            },
            'statement_start': self.statement_start.isoformat(),
            'statement_end': self.statement_end.isoformat(),
            'transactions': [txn.to_dict() for txn in self.transactions],
        }
