"""
Money and rounding helpers for CHF/EUR amounts.

All arithmetic runs on Decimal. Float input is converted through str() so a
value typed as 123.455 is rounded as 123.455, not as its binary neighbour.
"""

from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_UP, InvalidOperation, getcontext, localcontext
from enum import Enum
import logging
import re

from payref.core.exceptions import ParseError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

_AMOUNT_NOISE_RE = re.compile(r"[^0-9.,'’\-]")
_APOSTROPHES_RE = re.compile(r"['’]")
_NUMBER_PREFIX_RE = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


class Currency(str, Enum):
    CHF = "CHF"
    EUR = "EUR"


_CURRENCY_SYMBOLS = {
    "CHF": "CHF",
    "EUR": "€",
}

# locale -> (group separator, decimal separator, symbol first)
_LOCALE_FORMATS = {
    "de-CH": ("’", ".", True),
    "fr-CH": (" ", ",", False),
    "de-DE": (".", ",", False),
    "en-US": (",", ".", True),
}


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _context_for(*values: Decimal) -> Context:
    """
    Copy of the current context with enough precision to add, multiply and
    quantize the given values to the cent without rounding away digits.
    """
    context = getcontext().copy()
    finite = [value for value in values if value.is_finite() and value]
    if finite:
        top = max(value.adjusted() for value in finite)
        bottom = min(min(value.as_tuple().exponent for value in finite), -2)
        digits = sum(len(value.as_tuple().digits) for value in finite)
        # headroom for carries and the x20 cash scaling
        context.prec = max(context.prec, top - bottom + 1, digits) + 10
    return context


def _quantize(value: Decimal) -> Decimal:
    with localcontext(_context_for(value)):
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_currency(amount) -> Decimal:
    """Round to two decimals, half away from zero."""
    return _quantize(_to_decimal(amount))


def round_swiss_cash(amount) -> Decimal:
    """Round to the nearest 0.05 (Swiss cash rounding), ties away from zero."""
    value = _to_decimal(amount)
    with localcontext(_context_for(value)):
        scaled = (value * 20).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return _quantize(scaled / 20)


def calculate_percentage(amount, percentage) -> Decimal:
    amount = _to_decimal(amount)
    percentage = _to_decimal(percentage)
    with localcontext(_context_for(amount, percentage)):
        return round_currency(amount * (percentage / 100))


def calculate_tax(net_amount, tax_rate) -> Decimal:
    return calculate_percentage(net_amount, tax_rate)


def calculate_gross(net_amount, tax_rate) -> Decimal:
    net_amount = _to_decimal(net_amount)
    tax = calculate_tax(net_amount, tax_rate)
    with localcontext(_context_for(net_amount, tax)):
        return round_currency(net_amount + tax)


def calculate_net(gross_amount, tax_rate) -> Decimal:
    gross_amount = _to_decimal(gross_amount)
    tax_rate = _to_decimal(tax_rate)
    with localcontext(_context_for(gross_amount, tax_rate)):
        divisor = Decimal("1") + tax_rate / 100
        return round_currency(gross_amount / divisor)


def sum_amounts(amounts) -> Decimal:
    """Sum all amounts exactly, then round the total once."""
    values = [_to_decimal(amount) for amount in amounts]
    with localcontext(_context_for(*values)):
        total = sum(values, Decimal("0"))
    return round_currency(total)


def is_valid_currency(currency: str | None) -> bool:
    return currency in {c.value for c in Currency}


def get_currency_symbol(currency: str) -> str:
    return _CURRENCY_SYMBOLS.get(currency, currency)


def format_currency(amount, currency: str = "CHF", locale: str = "de-CH") -> str:
    group, decimal_sep, symbol_first = _LOCALE_FORMATS.get(locale, _LOCALE_FORMATS["de-CH"])
    value = round_currency(amount)
    number = f"{abs(value):,.2f}".translate(str.maketrans({",": group, ".": decimal_sep}))
    if value < 0:
        number = f"-{number}"
    symbol = get_currency_symbol(currency)
    if symbol_first:
        return f"{symbol} {number}"
    return f"{number} {symbol}"


def _normalize_amount_text(text: str) -> str:
    cleaned = _AMOUNT_NOISE_RE.sub("", text)
    last_dot = cleaned.rfind(".")
    last_comma = cleaned.rfind(",")

    if last_dot > last_comma:
        return _APOSTROPHES_RE.sub("", cleaned.replace(",", ""))
    if last_comma > last_dot:
        return _APOSTROPHES_RE.sub("", cleaned.replace(".", "")).replace(",", ".", 1)
    return _APOSTROPHES_RE.sub("", cleaned)


def parse_amount_strict(value) -> Decimal:
    """
    Parse a numeric or textual amount.

    Text may carry currency symbols, spaces and either Swiss/English
    ("1'234.56") or continental ("1.234,56") separators. Whichever of "." and
    "," appears last is taken as the decimal separator. Raises ParseError when
    nothing numeric is left after cleaning.
    """
    if isinstance(value, (int, float, Decimal)):
        return _to_decimal(value)
    if not isinstance(value, str):
        raise ParseError(f"Unsupported amount type: {type(value).__name__}")

    normalized = _normalize_amount_text(value)
    match = _NUMBER_PREFIX_RE.match(normalized)
    if not match:
        raise ParseError(f"Amount is not numeric: {value!r}")
    try:
        return Decimal(match.group(0))
    except InvalidOperation as exc:
        raise ParseError(f"Amount is not numeric: {value!r}") from exc


def parse_amount(value) -> Decimal:
    """Lenient variant of parse_amount_strict: anything unreadable becomes 0."""
    try:
        return parse_amount_strict(value)
    except ParseError:
        if value is not None and str(value).strip():
            logger.warning(f"Unparsable amount {value!r}, defaulting to 0")
        return Decimal("0")


@dataclass(frozen=True)
class MonetaryAmount:
    value: Decimal
    currency: Currency

    def __post_init__(self):
        object.__setattr__(self, "value", round_currency(self.value))
        object.__setattr__(self, "currency", Currency(self.currency))

    @classmethod
    def of(cls, raw, currency: Currency | str) -> "MonetaryAmount":
        return cls(value=parse_amount(raw), currency=Currency(currency))

    @property
    def minor_units(self) -> int:
        return int(self.value * 100)

    def format(self, locale: str = "de-CH") -> str:
        return format_currency(self.value, self.currency.value, locale)

    def __str__(self) -> str:
        return f"{self.currency.value} {self.value:.2f}"
