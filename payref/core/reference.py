"""
Payment references carried by a QR bill.

A reference is one of three closed variants. Each variant checks its own
grammar on construction, so a QRR reference holding letters or a SCOR
reference without the RF prefix cannot be built.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar
import logging
import re

from payref.core.checksum import mod10_recursive, mod97_check
from payref.core.exceptions import FormatError

logger = logging.getLogger(__name__)

QRR_LENGTH = 27
QRR_PAYLOAD_LENGTH = QRR_LENGTH - 1
SCOR_PAYLOAD_LENGTH = 8
SCOR_MAX_PAYLOAD = 21

_QRR_RE = re.compile(r"\d{27}")
_SCOR_RE = re.compile(r"RF\d{2}[A-Za-z0-9]{1,21}")
_NON_DIGIT_RE = re.compile(r"\D")


class ReferenceScheme(str, Enum):
    QRR = "QRR"
    SCOR = "SCOR"
    NON = "NON"


@dataclass(frozen=True)
class QRRReference:
    digits: str
    scheme: ClassVar[ReferenceScheme] = ReferenceScheme.QRR

    def __post_init__(self):
        if not _QRR_RE.fullmatch(self.digits or ""):
            raise FormatError(f"QRR reference must be exactly {QRR_LENGTH} digits: {self.digits!r}")

    @property
    def value(self) -> str:
        return self.digits


@dataclass(frozen=True)
class SCORReference:
    code: str
    scheme: ClassVar[ReferenceScheme] = ReferenceScheme.SCOR

    def __post_init__(self):
        if not _SCOR_RE.fullmatch(self.code or ""):
            raise FormatError(
                "SCOR reference must be RF, 2 check digits and up to "
                f"{SCOR_MAX_PAYLOAD} alphanumeric characters: {self.code!r}"
            )

    @property
    def check_digits(self) -> str:
        return self.code[2:4]

    @property
    def payload(self) -> str:
        return self.code[4:]

    @property
    def value(self) -> str:
        return self.code


@dataclass(frozen=True)
class NonReference:
    scheme: ClassVar[ReferenceScheme] = ReferenceScheme.NON

    @property
    def value(self) -> str:
        return ""


PaymentReference = QRRReference | SCORReference | NonReference


def build_reference(scheme: ReferenceScheme | str, value: str | None) -> PaymentReference:
    """Wrap an already assigned reference string in its variant."""
    scheme = ReferenceScheme(scheme)
    if scheme is ReferenceScheme.QRR:
        return QRRReference((value or "").strip())
    if scheme is ReferenceScheme.SCOR:
        return SCORReference((value or "").strip())
    if value:
        raise FormatError("Scheme NON does not carry a reference")
    return NonReference()


def _document_digits(document_id: str | None) -> str:
    return _NON_DIGIT_RE.sub("", document_id or "")


def derive_reference(scheme: ReferenceScheme | str, document_id: str | None) -> PaymentReference:
    """
    Derive a reference from the digits of a document identifier.

    SCOR: digits left padded to 8, "RF" + mod 97 check + digits.
    QRR: digits left padded to 26, followed by the mod 10 check digit.
    """
    scheme = ReferenceScheme(scheme)
    if scheme is ReferenceScheme.NON:
        return NonReference()

    digits = _document_digits(document_id)
    if scheme is ReferenceScheme.SCOR:
        payload = digits.zfill(SCOR_PAYLOAD_LENGTH)
        reference = SCORReference(f"RF{mod97_check(payload)}{payload}")
    else:
        payload = digits.zfill(QRR_PAYLOAD_LENGTH)
        if len(payload) > QRR_PAYLOAD_LENGTH:
            raise FormatError(
                f"Document id {document_id!r} has more than {QRR_PAYLOAD_LENGTH} digits"
            )
        reference = QRRReference(f"{payload}{mod10_recursive(payload)}")

    logger.debug(f"Derived {scheme.value} reference {reference.value} for document {document_id}")
    return reference


def resolve_reference(
    scheme: ReferenceScheme | str,
    preset: str | None,
    document_id: str | None,
) -> PaymentReference:
    """Use the preset reference when there is one, otherwise derive it."""
    scheme = ReferenceScheme(scheme)
    if scheme is ReferenceScheme.NON:
        return NonReference()
    if preset:
        return build_reference(scheme, preset)
    return derive_reference(scheme, document_id)
