from dataclasses import dataclass
from enum import Enum
import re

from payref.core.exceptions import FormatError


QR_IID_RANGE = (30000, 31999)

_WHITESPACE_RE = re.compile(r"\s+")
_SWISS_ACCOUNT_RE = re.compile(r"CH\d{2}[A-Z0-9]{17}")
_SWISS_IBAN_DIGITS_RE = re.compile(r"CH\d{19}")


class AccountCategory(str, Enum):
    STANDARD = "Standard"
    QR_CAPABLE = "QRCapable"


def normalize_account(value: str | None) -> str:
    return _WHITESPACE_RE.sub("", value or "").upper()


def _iban_iid(normalized: str) -> int | None:
    iid = normalized[4:9]
    if len(iid) != 5 or not iid.isdigit():
        return None
    return int(iid)


def classify_account(account: str | None) -> AccountCategory:
    """
    Classify a Swiss account as a plain IBAN or a QR-IBAN.

    The account must be "CH" + 2 check digits + 17 alphanumerics. It is a
    QR-IBAN when its institution id (characters 5-9) lies in 30000-31999.
    The IBAN check digits are not verified.
    """
    normalized = normalize_account(account)
    if not _SWISS_ACCOUNT_RE.fullmatch(normalized):
        raise FormatError(f"Invalid Swiss account number: {account!r}")

    iid = _iban_iid(normalized)
    low, high = QR_IID_RANGE
    if iid is not None and low <= iid <= high:
        return AccountCategory.QR_CAPABLE
    return AccountCategory.STANDARD


def is_qr_iban(account: str | None) -> bool:
    try:
        return classify_account(account) is AccountCategory.QR_CAPABLE
    except FormatError:
        return False


def is_valid_iban(account: str | None) -> bool:
    """Basic Swiss IBAN format check: "CH" followed by 19 digits."""
    return bool(_SWISS_IBAN_DIGITS_RE.fullmatch(normalize_account(account)))


def has_valid_iban_checksum(account: str | None) -> bool:
    """ISO 13616 mod-97 check. Not used by classification or validation."""
    normalized = normalize_account(account)
    if len(normalized) < 5 or not (normalized.isascii() and normalized.isalnum()):
        return False
    rearranged = normalized[4:] + normalized[:4]
    digits = "".join(str(ord(ch) - 55) if ch.isalpha() else ch for ch in rearranged)
    return int(digits) % 97 == 1


@dataclass(frozen=True)
class PaymentAccount:
    raw: str
    normalized: str
    category: AccountCategory

    @classmethod
    def parse(cls, raw: str) -> "PaymentAccount":
        return cls(
            raw=raw,
            normalized=normalize_account(raw),
            category=classify_account(raw),
        )

    @property
    def is_qr_capable(self) -> bool:
        return self.category is AccountCategory.QR_CAPABLE
