from dataclasses import dataclass
from decimal import Decimal
import logging
import re

from payref.core.account import PaymentAccount
from payref.core.config import PaymentConfig
from payref.core.money import (
    MonetaryAmount,
    calculate_tax,
    parse_amount,
    round_currency,
    sum_amounts,
)
from payref.core.reference import (
    PaymentReference,
    ReferenceScheme,
    derive_reference,
    resolve_reference,
)
from payref.core.validator import PaymentCandidate, validate_candidate

logger = logging.getLogger(__name__)

MAX_ADDITIONAL_INFO = 140

_TRANSLITERATIONS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "Ä": "Ae",
    "Ö": "Oe",
    "Ü": "Ue",
    "ß": "ss",
}
_NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")
_LINE_BREAK_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class PaymentInstruction:
    amount: MonetaryAmount
    account: PaymentAccount
    reference: PaymentReference
    remittance_info: str = ""

    def __post_init__(self):
        object.__setattr__(self, "remittance_info", (self.remittance_info or "")[:MAX_ADDITIONAL_INFO])

    def to_payload(self) -> dict:
        return {
            "amount": f"{self.amount.value:.2f}",
            "currency": self.amount.currency.value,
            "account": self.account.normalized,
            "account_category": self.account.category.value,
            "reference_type": self.reference.scheme.value,
            "reference": self.reference.value,
            "additional_information": self.remittance_info,
        }


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    total: Decimal

    @property
    def subtotal(self) -> Decimal:
        return round_currency(self.quantity * self.unit_price)

    @property
    def tax_amount(self) -> Decimal:
        return calculate_tax(self.quantity * self.unit_price, self.tax_rate)

    @property
    def total_with_tax(self) -> Decimal:
        return sum_amounts([self.subtotal, self.tax_amount])


@dataclass(frozen=True)
class InvoicePayment:
    number: str
    subtotal: Decimal
    tax_total: Decimal
    total: Decimal
    instruction: PaymentInstruction
    line_items: tuple = ()


def sanitize_text(text: str | None) -> str:
    """Transliterate German umlauts and drop any other non-ASCII character."""
    if not text:
        return ""
    for source, target in _TRANSLITERATIONS.items():
        text = text.replace(source, target)
    return _NON_ASCII_RE.sub("", text)


def build_additional_info(document_id: str | None, notes: str | None = None) -> str:
    parts = []
    if document_id:
        parts.append(f"Rechnung {document_id}")
    if notes and notes.strip():
        parts.append(_LINE_BREAK_RE.sub(" ", notes.strip()))
    return sanitize_text(" / ".join(parts))[:MAX_ADDITIONAL_INFO]


def build_payment_instruction(
    config: PaymentConfig,
    *,
    amount,
    document_id: str | None,
    notes: str | None = None,
    currency: str | None = None,
) -> PaymentInstruction:
    """
    Validate and assemble the payment data for one outbound document.

    A preset reference from the config wins over derivation. Without one,
    SCOR and QRR references are derived from the digits of document_id.
    Raises ValidationError or FormatError instead of returning a partial
    instruction.
    """
    logger.debug(f"Building payment instruction for document {document_id}")

    scheme = config.reference_scheme
    currency = currency or config.currency.value

    if config.preset_reference or scheme is ReferenceScheme.NON:
        reference_value = config.preset_reference
    else:
        reference_value = derive_reference(scheme, document_id).value

    validate_candidate(
        PaymentCandidate(
            account=config.account,
            currency=currency,
            scheme=scheme.value,
            reference=reference_value,
            amount=amount,
        ),
        verify_checksum=config.strict_checksum,
    )

    instruction = PaymentInstruction(
        amount=MonetaryAmount.of(amount, currency),
        account=PaymentAccount.parse(config.account),
        reference=resolve_reference(scheme, reference_value, document_id),
        remittance_info=build_additional_info(document_id, notes),
    )

    logger.debug(
        f"Payment instruction ready for document {document_id}: "
        f"{instruction.reference.scheme.value} {instruction.reference.value}"
    )
    return instruction


def map_line_item(record) -> LineItem:
    """
    Map one inbound line item. Quantity defaults to 1 when missing or zero,
    and a missing amount falls back to quantity x unit price.
    """
    quantity = parse_amount(record.quantity) or Decimal("1")
    unit_price = parse_amount(record.unit_price)
    return LineItem(
        description=record.description or record.kind or "Service",
        quantity=quantity,
        unit_price=round_currency(unit_price),
        tax_rate=parse_amount(record.tax_percentage),
        total=round_currency(parse_amount(record.amount) or quantity * unit_price),
    )


def calculate_totals(items) -> tuple[Decimal, Decimal, Decimal]:
    """Subtotal, tax and total of the given line items."""
    subtotal = sum_amounts(item.subtotal for item in items)
    tax_total = sum_amounts(item.tax_amount for item in items)
    return subtotal, tax_total, sum_amounts([subtotal, tax_total])


def map_invoice_record(record, config: PaymentConfig) -> InvoicePayment:
    """
    Map an inbound invoice record (free-text amounts) to its payment data.

    Totals come from the record itself, not from its line items: the issuing
    system already applied its own tax rounding.
    """
    total = parse_amount(record.amount)
    tax_total = parse_amount(record.tax_amount or 0)
    items = tuple(map_line_item(item) for item in record.line_items or [])

    instruction = build_payment_instruction(
        config,
        amount=total,
        document_id=record.number,
        notes=record.notes,
        currency=record.currency or config.currency.value,
    )

    logger.debug(f"Mapped invoice {record.number} with {len(items)} items")
    return InvoicePayment(
        number=record.number,
        subtotal=round_currency(total - tax_total),
        tax_total=round_currency(tax_total),
        total=round_currency(total),
        instruction=instruction,
        line_items=items,
    )
