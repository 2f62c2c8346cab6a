import re


_MOD10_TABLE = [0, 9, 4, 6, 8, 2, 7, 1, 3, 5]

# "RF00" with letters mapped to digits (R=27, F=15).
_RF_SUFFIX = "271500"

_QRR_RE = re.compile(r"\d{27}")
_SCOR_RE = re.compile(r"RF(\d{2})([A-Za-z0-9]{1,21})")


def _mod97(numeric_str: str) -> int:
    remainder = 0
    for ch in numeric_str:
        remainder = (remainder * 10 + int(ch)) % 97
    return remainder


def _alnum_to_numeric(value: str) -> str:
    digits = []
    for ch in value:
        if ch.isalpha():
            digits.append(str(ord(ch.upper()) - 55))
        else:
            digits.append(ch)
    return "".join(digits)


def mod10_recursive(payload: str) -> str:
    """Check digit of a QR reference (ESR recursive modulo 10), left to right."""
    carry = 0
    for ch in payload:
        carry = _MOD10_TABLE[(carry + int(ch)) % 10]
    return str((10 - carry) % 10)


def mod97_check(payload: str) -> str:
    """
    Two check digits of an ISO 11649 creditor reference (ISO 7064 MOD 97-10).

    The payload is suffixed with the full "RF00" (271500). Older tooling that
    appended only "2715" produced different digits, e.g. RF39539007547034
    instead of RF18539007547034, so references it issued do not verify here.
    """
    remainder = _mod97(_alnum_to_numeric(payload) + _RF_SUFFIX)
    return f"{98 - remainder:02d}"


def is_valid_qrr(reference: str | None) -> bool:
    if not _QRR_RE.fullmatch(reference or ""):
        return False
    return mod10_recursive(reference[:-1]) == reference[-1]


def is_valid_scor(reference: str | None) -> bool:
    match = _SCOR_RE.fullmatch((reference or "").upper())
    if not match:
        return False
    check, payload = match.groups()
    return mod97_check(payload) == check
