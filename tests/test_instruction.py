from decimal import Decimal
import pytest
from payref.core.account import AccountCategory
from payref.core.config import PaymentConfig
from payref.core.exceptions import FormatError, ValidationError, ValidationErrorKind
from payref.core.instruction import (
    LineItem,
    PaymentInstruction,
    build_additional_info,
    build_payment_instruction,
    calculate_totals,
    map_invoice_record,
    map_line_item,
    sanitize_text,
)
from payref.core.reference import NonReference, QRRReference, SCORReference
from payref.schemas.instruction import InvoiceRecord, LineItemRecord

from conftest import QR_IBAN, QRR_SAMPLE, STANDARD_IBAN


def test_build_scor_instruction(scor_config):
    instruction = build_payment_instruction(
        scor_config,
        amount="CHF 1'250.505",
        document_id="INV-12345678",
        notes="Danke für Ihren Auftrag",
    )
    assert instruction.amount.value == Decimal("1250.51")
    assert instruction.account.category is AccountCategory.STANDARD
    assert instruction.reference == SCORReference("RF2012345678")
    assert instruction.remittance_info == "Rechnung INV-12345678 / Danke fuer Ihren Auftrag"


def test_build_qrr_instruction_derives_reference(qrr_config):
    instruction = build_payment_instruction(qrr_config, amount=100, document_id="INV-42")
    assert isinstance(instruction.reference, QRRReference)
    assert instruction.reference.value == "0" * 24 + "420"
    assert instruction.account.is_qr_capable


def test_build_qrr_instruction_uses_preset():
    config = PaymentConfig.create(
        account=QR_IBAN,
        currency="EUR",
        reference_scheme="QRR",
        preset_reference=QRR_SAMPLE,
    )
    instruction = build_payment_instruction(config, amount=12.5, document_id="INV-42")
    assert instruction.reference.value == QRR_SAMPLE
    assert instruction.amount.currency.value == "EUR"


def test_build_non_instruction():
    config = PaymentConfig.create(account=STANDARD_IBAN, currency="CHF", reference_scheme="NON")
    instruction = build_payment_instruction(config, amount=10, document_id="INV-42")
    assert instruction.reference == NonReference()
    assert instruction.to_payload()["reference"] == ""


def test_qrr_with_standard_account_is_rejected():
    config = PaymentConfig.create(account=STANDARD_IBAN, currency="CHF", reference_scheme="QRR")
    with pytest.raises(ValidationError) as exc:
        build_payment_instruction(config, amount=10, document_id="INV-42")
    assert exc.value.kind is ValidationErrorKind.SCHEME_ACCOUNT_MISMATCH


def test_missing_account_is_rejected():
    config = PaymentConfig.create(account=None, currency="CHF", reference_scheme="SCOR")
    with pytest.raises(ValidationError) as exc:
        build_payment_instruction(config, amount=10, document_id="INV-42")
    assert exc.value.kind is ValidationErrorKind.MISSING_ACCOUNT


def test_malformed_account_is_format_error():
    config = PaymentConfig.create(account="CH12", currency="CHF", reference_scheme="SCOR")
    with pytest.raises(FormatError):
        build_payment_instruction(config, amount=10, document_id="INV-42")


def test_strict_checksum_rejects_preset():
    config = PaymentConfig.create(
        account=QR_IBAN,
        currency="CHF",
        reference_scheme="QRR",
        preset_reference=QRR_SAMPLE[:-1] + "8",
        strict_checksum=True,
    )
    with pytest.raises(ValidationError) as exc:
        build_payment_instruction(config, amount=10, document_id="INV-42")
    assert exc.value.kind is ValidationErrorKind.BAD_REFERENCE_CHECKSUM


def test_amount_out_of_range(scor_config):
    with pytest.raises(ValidationError) as exc:
        build_payment_instruction(scor_config, amount="", document_id="INV-42")
    assert exc.value.kind is ValidationErrorKind.AMOUNT_OUT_OF_RANGE


def test_remittance_info_is_truncated(scor_config):
    instruction = build_payment_instruction(
        scor_config,
        amount=10,
        document_id="INV-42",
        notes="x" * 500,
    )
    assert len(instruction.remittance_info) == 140


def test_instruction_truncates_direct_construction(scor_config):
    built = build_payment_instruction(scor_config, amount=10, document_id="1")
    instruction = PaymentInstruction(
        amount=built.amount,
        account=built.account,
        reference=built.reference,
        remittance_info="y" * 141,
    )
    assert len(instruction.remittance_info) == 140


def test_to_payload(scor_config):
    instruction = build_payment_instruction(scor_config, amount=1234.5, document_id="INV-12345678")
    assert instruction.to_payload() == {
        "amount": "1234.50",
        "currency": "CHF",
        "account": STANDARD_IBAN,
        "account_category": "Standard",
        "reference_type": "SCOR",
        "reference": "RF2012345678",
        "additional_information": "Rechnung INV-12345678",
    }


def test_build_additional_info():
    assert build_additional_info("INV-1") == "Rechnung INV-1"
    assert build_additional_info("INV-1", "  ") == "Rechnung INV-1"
    assert build_additional_info(None, "Zeile 1\r\nZeile 2") == "Zeile 1 Zeile 2"
    assert build_additional_info(None, None) == ""


def test_sanitize_text():
    assert sanitize_text("Müller & Söhne, Zürich") == "Mueller & Soehne, Zuerich"
    assert sanitize_text("Straße") == "Strasse"
    assert sanitize_text("Café ÄÖÜ") == "Caf AeOeUe"
    assert sanitize_text(None) == ""


def test_map_invoice_record(scor_config):
    record = InvoiceRecord(
        number="INV-12345678",
        amount="CHF 1'081.00",
        tax_amount="81,00",
        notes="Projekt Alpha",
    )
    payment = map_invoice_record(record, scor_config)
    assert payment.number == "INV-12345678"
    assert payment.total == Decimal("1081.00")
    assert payment.tax_total == Decimal("81.00")
    assert payment.subtotal == Decimal("1000.00")
    assert payment.instruction.reference.value == "RF2012345678"
    assert payment.instruction.remittance_info == "Rechnung INV-12345678 / Projekt Alpha"


def test_map_invoice_record_currency(scor_config):
    record = InvoiceRecord(number="INV-1", amount=50, currency="EUR")
    payment = map_invoice_record(record, scor_config)
    assert payment.instruction.amount.currency.value == "EUR"
    assert payment.tax_total == Decimal("0.00")

    record = InvoiceRecord(number="INV-1", amount=50, currency="USD")
    with pytest.raises(ValidationError) as exc:
        map_invoice_record(record, scor_config)
    assert exc.value.kind is ValidationErrorKind.UNSUPPORTED_CURRENCY


def test_map_line_item_free_text_prices():
    item = map_line_item(
        LineItemRecord(description="Beratung", quantity="2.5", unit_price="CHF 1'200.00", tax_percentage="8.1")
    )
    assert item.description == "Beratung"
    assert item.quantity == Decimal("2.5")
    assert item.unit_price == Decimal("1200.00")
    assert item.tax_rate == Decimal("8.1")
    # no amount given: quantity x unit price
    assert item.total == Decimal("3000.00")
    assert item.subtotal == Decimal("3000.00")
    assert item.tax_amount == Decimal("243.00")
    assert item.total_with_tax == Decimal("3243.00")


def test_map_line_item_defaults():
    item = map_line_item(LineItemRecord(kind="Product", unit_price="99,955", tax_percentage=7.7, amount="100.00"))
    assert item.description == "Product"
    assert item.quantity == Decimal("1")
    assert item.unit_price == Decimal("99.96")
    assert item.total == Decimal("100.00")
    assert item.tax_amount == Decimal("7.70")
    assert item.total_with_tax == Decimal("107.66")

    item = map_line_item(LineItemRecord(quantity="0", unit_price="n/a"))
    assert item == LineItem(
        description="Service",
        quantity=Decimal("1"),
        unit_price=Decimal("0.00"),
        tax_rate=Decimal("0"),
        total=Decimal("0.00"),
    )


def test_line_item_is_immutable():
    item = map_line_item(LineItemRecord(unit_price=10))
    with pytest.raises(AttributeError):
        item.total = Decimal("1")


def test_calculate_totals():
    items = [
        map_line_item(LineItemRecord(quantity="2.5", unit_price="CHF 1'200.00", tax_percentage="8.1")),
        map_line_item(LineItemRecord(unit_price="99,955", tax_percentage="7.7", amount="100.00")),
    ]
    assert calculate_totals(items) == (Decimal("3099.96"), Decimal("250.70"), Decimal("3350.66"))
    assert calculate_totals([]) == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))


def test_map_invoice_record_line_items(scor_config):
    record = InvoiceRecord(
        number="INV-12345678",
        amount="CHF 1'081.00",
        tax_amount="81.00",
        line_items=[
            {"description": "Lieferung", "quantity": "4", "unit_price": "250.00", "tax_percentage": "8.1"},
            {"kind": "Zuschlag", "unit_price": "CHF 0.00"},
        ],
    )
    payment = map_invoice_record(record, scor_config)
    assert [item.description for item in payment.line_items] == ["Lieferung", "Zuschlag"]
    assert payment.line_items[0].total == Decimal("1000.00")
    assert payment.line_items[0].tax_amount == Decimal("81.00")
    # record totals are kept as issued
    assert payment.total == Decimal("1081.00")
    assert payment.subtotal == Decimal("1000.00")

    assert map_invoice_record(InvoiceRecord(number="INV-1", amount=10), scor_config).line_items == ()
