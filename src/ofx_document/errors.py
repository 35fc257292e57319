"""Error taxonomy shared by every stage of the OFX parsing pipeline."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of defect that aborted a parse call."""

    HEADER_FORMAT = 'header_format'
    MARKUP = 'markup'
    UNSUPPORTED_ACCOUNT_TYPE = 'unsupported_account_type'
    MISSING_SECTION = 'missing_section'
    AMOUNT_PARSE = 'amount_parse'
    DATE_PARSE = 'date_parse'
    UNKNOWN_BANK_ACCOUNT_TYPE = 'unknown_bank_account_type'
    UNKNOWN_ENUM_VALUE = 'unknown_enum_value'


class OFXParseError(ValueError):
    """Raised when an OFX statement cannot be turned into a ``Document``.

    Args:
        kind: Category of the failure.
        message: Human readable description.
        field: Header field, element or section name the failure refers to.
        raw: Offending raw text, if any.
        expected: Expected literal for header mismatches.
        position: Character offset into the markup (after the legacy header) for
            ``MARKUP`` failures.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        field: str | None = None,
        raw: str | None = None,
        expected: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.raw = raw
        self.expected = expected
        self.position = position

    def context(self) -> dict[str, object]:
        """Return the structured context payload without empty entries."""

        payload: dict[str, object] = {'kind': self.kind.value}
        if self.field is not None:
            payload['field'] = self.field
        if self.raw is not None:
            payload['raw'] = self.raw
        if self.expected is not None:
            payload['expected'] = self.expected
        if self.position is not None:
            payload['position'] = self.position
        return payload


def missing_section(name: str) -> OFXParseError:
    """Build the error for a required section or element that is absent."""

    return OFXParseError(ErrorKind.MISSING_SECTION, f'{name} information not found', field=name)
