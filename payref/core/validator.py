from dataclasses import dataclass
from decimal import Decimal
import logging
import re

from payref.core.account import is_qr_iban
from payref.core.checksum import is_valid_qrr, is_valid_scor
from payref.core.exceptions import ValidationError, ValidationErrorKind
from payref.core.money import is_valid_currency, parse_amount
from payref.core.reference import ReferenceScheme

logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999.99")

_QRR_RE = re.compile(r"\d{27}")
_SCOR_RE = re.compile(r"RF\d{2}[A-Za-z0-9]+")

_SCHEMES = {scheme.value for scheme in ReferenceScheme}


@dataclass(frozen=True)
class PaymentCandidate:
    account: str | None
    currency: str | None
    scheme: str | None
    reference: str | None
    amount: Decimal | float | int | str | None


def validate_candidate(candidate: PaymentCandidate, *, verify_checksum: bool = False) -> None:
    """
    Check the cross-field contract of a payment before it is built.

    Rules run in a fixed order and the first failure is raised as a
    ValidationError carrying its kind. Reference checksums are only
    recomputed when verify_checksum is set.
    """
    if not candidate.account:
        raise ValidationError(ValidationErrorKind.MISSING_ACCOUNT, "Account (IBAN) is required")

    if not is_valid_currency(candidate.currency):
        raise ValidationError(
            ValidationErrorKind.UNSUPPORTED_CURRENCY,
            f"Currency must be CHF or EUR, got {candidate.currency!r}",
        )

    if candidate.scheme not in _SCHEMES:
        raise ValidationError(
            ValidationErrorKind.UNSUPPORTED_SCHEME,
            f"Reference type must be QRR, SCOR, or NON, got {candidate.scheme!r}",
        )

    reference = candidate.reference or ""

    if candidate.scheme == ReferenceScheme.QRR.value:
        if not is_qr_iban(candidate.account):
            raise ValidationError(
                ValidationErrorKind.SCHEME_ACCOUNT_MISMATCH,
                "QRR reference type requires a QR-IBAN (IID 30000-31999)",
            )
        if not _QRR_RE.fullmatch(reference):
            raise ValidationError(
                ValidationErrorKind.BAD_REFERENCE_LENGTH,
                "QRR reference must be exactly 27 digits",
            )
        if verify_checksum and not is_valid_qrr(reference):
            raise ValidationError(
                ValidationErrorKind.BAD_REFERENCE_CHECKSUM,
                f"QRR reference check digit mismatch: {reference}",
            )

    if candidate.scheme == ReferenceScheme.SCOR.value and reference:
        if not _SCOR_RE.fullmatch(reference):
            raise ValidationError(
                ValidationErrorKind.BAD_REFERENCE_FORMAT,
                "SCOR reference must start with RF followed by 2 digits and alphanumeric characters",
            )
        if verify_checksum and not is_valid_scor(reference):
            raise ValidationError(
                ValidationErrorKind.BAD_REFERENCE_CHECKSUM,
                f"SCOR reference check digits mismatch: {reference}",
            )

    amount = parse_amount(candidate.amount)
    if not amount.is_finite() or amount < MIN_AMOUNT or amount > MAX_AMOUNT:
        raise ValidationError(
            ValidationErrorKind.AMOUNT_OUT_OF_RANGE,
            f"Amount must be between 0.01 and 999,999,999.99, got {amount}",
        )

    logger.debug(f"Payment candidate valid ({candidate.scheme}, {candidate.currency} {amount})")
