from enum import Enum


class PaymentReferenceError(Exception):
    """Base class for every failure raised by the payment core."""


class ParseError(PaymentReferenceError):
    """Amount text could not be read as a number (strict parser only)."""


class FormatError(PaymentReferenceError):
    """Account or reference does not match its structural grammar."""


class ConfigurationError(PaymentReferenceError):
    """Currency, scheme or preset reference outside the recognized options."""


class ValidationErrorKind(str, Enum):
    MISSING_ACCOUNT = "MissingAccount"
    UNSUPPORTED_CURRENCY = "UnsupportedCurrency"
    UNSUPPORTED_SCHEME = "UnsupportedScheme"
    SCHEME_ACCOUNT_MISMATCH = "SchemeAccountMismatch"
    BAD_REFERENCE_LENGTH = "BadReferenceLength"
    BAD_REFERENCE_FORMAT = "BadReferenceFormat"
    AMOUNT_OUT_OF_RANGE = "AmountOutOfRange"
    # Only raised when strict reference checksums are enabled.
    BAD_REFERENCE_CHECKSUM = "BadReferenceChecksum"


class ValidationError(PaymentReferenceError):
    def __init__(self, kind: ValidationErrorKind, detail: str):
        super().__init__(detail)
        self.kind = kind
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"
