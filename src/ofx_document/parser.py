"""Assembly of typed OFX documents from statement text."""

from __future__ import annotations

import locale
import logging
from typing import IO, TYPE_CHECKING

from ofx_document.config import ParserSettings
from ofx_document.decoders import (
    BANK_ACCOUNT_TYPES,
    CORRECTION_ACTIONS,
    TRANSACTION_TYPES,
    decode_amount,
    decode_datetime,
    decode_enum,
    decode_optional_datetime,
    find_text,
)
from ofx_document.detect import detect_account_type, detect_format
from ofx_document.errors import ErrorKind, missing_section
from ofx_document.header import strip_header
from ofx_document.markup import parse_xml, sgml_to_xml
from ofx_document.models import (
    Account,
    AccountType,
    Balance,
    CorrectionAction,
    Document,
    SignOn,
    SourceFormat,
    Transaction,
)
from ofx_document.paths import Section, select_section

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from datetime import datetime
    from pathlib import Path

    from ofx_document.markup import Node

LOGGER = logging.getLogger(__name__)

COUNTERPARTY_TAGS: tuple[tuple[str, AccountType], ...] = (
    ('BANKACCTTO', AccountType.BANK),
    ('CCACCTTO', AccountType.CREDIT_CARD),
)
CURRENCY_OVERRIDE_TAGS: tuple[str, ...] = ('CURRENCY', 'ORIGCURRENCY')


class OFXDocumentParser:
    """Parse OFX statements (SGML or XML) into ``Document`` instances.

    Instances only hold immutable ``ParserSettings`` and can be shared
    between threads.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()

    def parse(self, text: str) -> Document:
        """Parse decoded statement ``text``."""

        account_type = detect_account_type(text)
        source_format = detect_format(text)
        LOGGER.debug('Detected %s statement in %s format', account_type.value, source_format.value)
        markup = text
        if source_format is SourceFormat.SGML:
            body = strip_header(text, accept_collapsed=self.settings.accept_collapsed_header)
            markup = sgml_to_xml(body)
        root = parse_xml(markup)
        document = self._assemble(root, account_type)
        LOGGER.debug('Parsed %s', document.summary())
        return document

    def parse_stream(self, stream: IO[bytes], encoding: str | None = None) -> Document:
        """Decode ``stream`` and parse the resulting text.

        The encoding falls back to the configured one, then to the platform
        default.
        """

        codec = encoding or self.settings.encoding or locale.getpreferredencoding(False)
        return self.parse(stream.read().decode(codec))

    def parse_file(self, path: Path, encoding: str | None = None) -> Document:
        """Read and parse the statement stored at ``path``."""

        with path.expanduser().open('rb') as handle:
            return self.parse_stream(handle, encoding=encoding)

    def _date(self, node: Node, tag: str) -> datetime:
        return decode_datetime(find_text(node, tag), tag, keep_timezone=self.settings.keep_timezone)

    def _optional_date(self, node: Node, tag: str) -> datetime | None:
        return decode_optional_datetime(find_text(node, tag), tag, keep_timezone=self.settings.keep_timezone)

    def _assemble(self, root: Node, account_type: AccountType) -> Document:
        currency_node = select_section(root, account_type, Section.CURRENCY)
        currency = currency_node.text if currency_node is not None else None
        if not currency:
            raise missing_section('Currency')

        sign_on = self._sign_on(root, account_type)

        account_node = select_section(root, account_type, Section.ACCOUNT_INFO)
        if account_node is None:
            raise missing_section('Account')
        account = self._account(account_node, account_type)

        transaction_list = select_section(root, account_type, Section.TRANSACTIONS)
        if transaction_list is None:
            raise missing_section('Transactions')
        statement_start = self._date(transaction_list, 'DTSTART')
        statement_end = self._date(transaction_list, 'DTEND')
        transactions = tuple(
            self._transaction(node, currency) for node in transaction_list.search_all('STMTTRN')
        )

        balance_node = select_section(root, account_type, Section.BALANCE)
        balance = self._balance(balance_node)

        return Document(
            account_type=account_type,
            currency=currency,
            sign_on=sign_on,
            account=account,
            balance=balance,
            statement_start=statement_start,
            statement_end=statement_end,
            transactions=transactions,
        )

    def _sign_on(self, root: Node, account_type: AccountType) -> SignOn:
        node = select_section(root, account_type, Section.SIGNON)
        if node is None:
            raise missing_section('SignOn')
        return SignOn(
            status_code=find_text(node, 'STATUS/CODE'),
            status_severity=find_text(node, 'STATUS/SEVERITY'),
            server_date=self._optional_date(node, 'DTSERVER'),
            language=find_text(node, 'LANGUAGE'),
            fi_org=find_text(node, 'FI/ORG'),
            fi_id=find_text(node, 'FI/FID'),
            intu_bid=find_text(node, 'INTU.BID'),
        )

    def _account(self, node: Node, account_type: AccountType) -> Account:
        """Build an ``Account`` from an account aggregate (``*ACCTFROM``/``*ACCTTO``)."""

        if account_type is not AccountType.BANK:
            return Account(
                account_id=find_text(node, 'ACCTID'),
                account_key=find_text(node, 'ACCTKEY'),
                account_type=account_type,
            )
        return Account(
            account_id=find_text(node, 'ACCTID'),
            account_key=find_text(node, 'ACCTKEY'),
            account_type=account_type,
            bank_id=find_text(node, 'BANKID'),
            branch_id=find_text(node, 'BRANCHID'),
            bank_account_type=decode_enum(
                BANK_ACCOUNT_TYPES,
                find_text(node, 'ACCTTYPE'),
                'ACCTTYPE',
                kind=ErrorKind.UNKNOWN_BANK_ACCOUNT_TYPE,
            ),
        )

    def _transaction(self, node: Node, default_currency: str) -> Transaction:
        transaction_id = find_text(node, 'FITID')
        if transaction_id is None:
            raise missing_section('FITID')
        correction_text = find_text(node, 'CORRECTACTION')
        correction_action = (
            decode_enum(CORRECTION_ACTIONS, correction_text, 'CORRECTACTION')
            if correction_text
            else CorrectionAction.NA
        )
        return Transaction(
            transaction_type=decode_enum(TRANSACTION_TYPES, find_text(node, 'TRNTYPE'), 'TRNTYPE'),
            date=self._date(node, 'DTPOSTED'),
            user_date=self._optional_date(node, 'DTUSER'),
            available_date=self._optional_date(node, 'DTAVAIL'),
            amount=decode_amount(find_text(node, 'TRNAMT'), 'TRNAMT'),
            transaction_id=transaction_id,
            corrected_id=find_text(node, 'CORRECTFITID'),
            correction_action=correction_action,
            server_id=find_text(node, 'SRVRTID'),
            check_number=find_text(node, 'CHECKNUM'),
            reference_number=find_text(node, 'REFNUM'),
            sic=find_text(node, 'SIC'),
            payee_id=find_text(node, 'PAYEEID'),
            name=find_text(node, 'NAME'),
            memo=find_text(node, 'MEMO'),
            currency=_effective_currency(node, default_currency),
            counterparty=self._counterparty(node),
        )

    def _counterparty(self, node: Node) -> Account | None:
        for tag, account_type in COUNTERPARTY_TAGS:
            target = node.search(tag)
            if target is not None:
                return self._account(target, account_type)
        return None

    def _balance(self, node: Node | None) -> Balance:
        ledger = node.find('LEDGERBAL') if node is not None else None
        if ledger is None:
            raise missing_section('Balance')
        ledger_balance = decode_amount(find_text(ledger, 'BALAMT'), 'LEDGERBAL/BALAMT')
        ledger_date = self._date(ledger, 'DTASOF')

        available = node.find('AVAILBAL') if node is not None else None
        if available is None:
            LOGGER.debug('No available balance reported; defaulting to zero')
            return Balance(ledger_balance=ledger_balance, ledger_balance_date=ledger_date)
        return Balance(
            ledger_balance=ledger_balance,
            ledger_balance_date=ledger_date,
            available_balance=decode_amount(find_text(available, 'BALAMT'), 'AVAILBAL/BALAMT'),
            available_balance_date=self._date(available, 'DTASOF'),
            has_available_balance=True,
        )


def _effective_currency(node: Node, default_currency: str) -> str:
    """Resolve a transaction currency: ``CURRENCY``, then ``ORIGCURRENCY``, then ``CURDEF``."""

    for tag in CURRENCY_OVERRIDE_TAGS:
        override = node.search(tag)
        if override is None:
            continue
        code = override.text or find_text(override, 'CURSYM')
        if code:
            return code
    return default_currency


_DEFAULT_PARSER = OFXDocumentParser()


def parse(text: str) -> Document:
    """Parse ``text`` with default settings."""

    return _DEFAULT_PARSER.parse(text)


def parse_stream(stream: IO[bytes], encoding: str | None = None) -> Document:
    """Parse a byte ``stream`` with default settings."""

    return _DEFAULT_PARSER.parse_stream(stream, encoding=encoding)


def parse_file(path: Path, encoding: str | None = None) -> Document:
    """Parse the statement stored at ``path`` with default settings."""

    return _DEFAULT_PARSER.parse_file(path, encoding=encoding)
