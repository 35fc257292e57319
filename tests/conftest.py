import textwrap
from collections.abc import Callable

import pytest

SGML_HEADER = textwrap.dedent(
    """\
    OFXHEADER:100
    DATA:OFXSGML
    VERSION:102
    SECURITY:NONE
    ENCODING:USASCII
    CHARSET:1252
    COMPRESSION:NONE
    OLDFILEUID:NONE
    NEWFILEUID:NONE

    """
)

SIGNON_SGML = textwrap.dedent(
    """\
    <SIGNONMSGSRSV1>
    <SONRS>
    <STATUS>
    <CODE>0
    <SEVERITY>INFO
    </STATUS>
    <DTSERVER>20230131120000[-3:BRT]
    <LANGUAGE>ENG
    <FI>
    <ORG>ACME
    <FID>1234
    </FI>
    </SONRS>
    </SIGNONMSGSRSV1>
    """
)

BANK_TRANSACTIONS_SGML = textwrap.dedent(
    """\
    <STMTTRN>
    <TRNTYPE>DEBIT
    <DTPOSTED>20230101120000
    <TRNAMT>-12.34
    <FITID>123
    <NAME>COFFEE SHOP
    <MEMO>Latte and
     croissant
    </STMTTRN>
    <STMTTRN>
    <TRNTYPE>CREDIT
    <DTPOSTED>20230115
    <DTUSER>20230114
    <TRNAMT>1500.00
    <FITID>124
    <NAME>PAYROLL
    <CURRENCY>
    <CURRATE>1.0
    <CURSYM>EUR
    </CURRENCY>
    </STMTTRN>
    <STMTTRN>
    <TRNTYPE>XFER
    <DTPOSTED>20230120093000.000[-3:BRT]
    <TRNAMT>-200.00
    <FITID>125
    <CHECKNUM>1001
    <NAME>TRANSFER
    <ORIGCURRENCY>
    <CURRATE>0.2
    <CURSYM>BRL
    </ORIGCURRENCY>
    <BANKACCTTO>
    <BANKID>0999
    <ACCTID>555
    <ACCTTYPE>SAVINGS
    </BANKACCTTO>
    </STMTTRN>
    """
)


def bank_statement(transactions: str = BANK_TRANSACTIONS_SGML, balances: str | None = None) -> str:
    """Build a legacy bank statement around the given transaction records."""

    if balances is None:
        balances = textwrap.dedent(
            """\
            <LEDGERBAL>
            <BALAMT>1287.66
            <DTASOF>20230131
            </LEDGERBAL>
            <AVAILBAL>
            <BALAMT>1200.00
            <DTASOF>20230131
            </AVAILBAL>
            """
        )
    body = (
        '<OFX>\n'
        + SIGNON_SGML
        + '<BANKMSGSRSV1>\n<STMTTRNRS>\n<TRNUID>1\n<STATUS>\n<CODE>0\n<SEVERITY>INFO\n</STATUS>\n'
        + '<STMTRS>\n<CURDEF>USD\n'
        + '<BANKACCTFROM>\n<BANKID>0341\n<BRANCHID>0001\n<ACCTID>987654\n<ACCTTYPE>CHECKING\n</BANKACCTFROM>\n'
        + '<BANKTRANLIST>\n<DTSTART>20230101\n<DTEND>20230131\n'
        + transactions
        + '</BANKTRANLIST>\n'
        + balances
        + '</STMTRS>\n</STMTTRNRS>\n</BANKMSGSRSV1>\n</OFX>\n'
    )
    return SGML_HEADER + body


CREDIT_CARD_SGML = SGML_HEADER + (
    '<OFX>\n'
    + SIGNON_SGML
    + textwrap.dedent(
        """\
        <CREDITCARDMSGSRSV1>
        <CCSTMTTRNRS>
        <TRNUID>1
        <STATUS>
        <CODE>0
        <SEVERITY>INFO
        </STATUS>
        <CCSTMTRS>
        <CURDEF>BRL
        <CCACCTFROM>
        <ACCTID>4111111111111111
        </CCACCTFROM>
        <BANKTRANLIST>
        <DTSTART>20230201
        <DTEND>20230228
        <STMTTRN>
        <TRNTYPE>PAYMENT
        <DTPOSTED>20230205
        <TRNAMT>350.00
        <FITID>CC-1
        <NAME>PAYMENT THANK YOU
        </STMTTRN>
        <STMTTRN>
        <TRNTYPE>DEBIT
        <DTPOSTED>20230210
        <TRNAMT>-89.90
        <FITID>CC-2
        <CORRECTFITID>CC-0
        <CORRECTACTION>REPLACE
        <NAME>BOOKSTORE
        </STMTTRN>
        </BANKTRANLIST>
        <LEDGERBAL>
        <BALAMT>-1024.50
        <DTASOF>20230228
        </LEDGERBAL>
        </CCSTMTRS>
        </CCSTMTTRNRS>
        </CREDITCARDMSGSRSV1>
        </OFX>
        """
    )
)

BANK_XML = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="UTF-8" standalone="no"?>
    <?OFX OFXHEADER="200" VERSION="211" SECURITY="NONE" OLDFILEUID="NONE" NEWFILEUID="NONE"?>
    <OFX>
      <SIGNONMSGSRSV1>
        <SONRS>
          <STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>
          <DTSERVER>20230131120000</DTSERVER>
          <LANGUAGE>ENG</LANGUAGE>
        </SONRS>
      </SIGNONMSGSRSV1>
      <BANKMSGSRSV1>
        <STMTTRNRS>
          <TRNUID>1</TRNUID>
          <STMTRS>
            <CURDEF>USD</CURDEF>
            <BANKACCTFROM>
              <BANKID>0341</BANKID>
              <ACCTID>987654</ACCTID>
              <ACCTTYPE>SAVINGS</ACCTTYPE>
            </BANKACCTFROM>
            <BANKTRANLIST>
              <DTSTART>20230101</DTSTART>
              <DTEND>20230131</DTEND>
              <STMTTRN>
                <TRNTYPE>DEBIT</TRNTYPE>
                <DTPOSTED>20230101120000</DTPOSTED>
                <TRNAMT>-12.34</TRNAMT>
                <FITID>123</FITID>
                <NAME>AT&amp;T</NAME>
              </STMTTRN>
            </BANKTRANLIST>
            <LEDGERBAL>
              <BALAMT>100.00</BALAMT>
              <DTASOF>20230131</DTASOF>
            </LEDGERBAL>
          </STMTRS>
        </STMTTRNRS>
      </BANKMSGSRSV1>
    </OFX>
    """
)


@pytest.fixture
def bank_sgml() -> str:
    return bank_statement()


@pytest.fixture
def credit_card_sgml() -> str:
    return CREDIT_CARD_SGML


@pytest.fixture
def bank_xml() -> str:
    return BANK_XML


@pytest.fixture
def make_bank_statement() -> Callable[..., str]:
    return bank_statement
