from fastapi import APIRouter, Depends, HTTPException, status
import logging

from payref.core.checksum import is_valid_qrr, is_valid_scor
from payref.core.config import PaymentConfig, settings
from payref.core.exceptions import ConfigurationError, FormatError, ValidationError
from payref.core.instruction import map_invoice_record
from payref.core.reference import ReferenceScheme, derive_reference
from payref.schemas.instruction import (
    InvoicePaymentResponse,
    InvoiceRecord,
    LineItemResponse,
    PaymentInstructionResponse,
    ReferenceResponse,
)

router = APIRouter(tags=["payments"])
logger = logging.getLogger(__name__)


def get_payment_config() -> PaymentConfig:
    try:
        return settings.payment_config()
    except ConfigurationError as exc:
        logger.error(f"Invalid payment configuration: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment configuration invalid",
        ) from exc


@router.post("/payment-instructions", response_model=InvoicePaymentResponse)
def create_payment_instruction(
    record: InvoiceRecord,
    config: PaymentConfig = Depends(get_payment_config),
):
    try:
        payment = map_invoice_record(record, config)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": exc.kind.value, "message": exc.detail},
        ) from exc
    except FormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": "FormatError", "message": str(exc)},
        ) from exc

    return InvoicePaymentResponse(
        number=payment.number,
        subtotal=f"{payment.subtotal:.2f}",
        tax_total=f"{payment.tax_total:.2f}",
        total=f"{payment.total:.2f}",
        payment=PaymentInstructionResponse(**payment.instruction.to_payload()),
        line_items=[
            LineItemResponse(
                description=item.description,
                quantity=str(item.quantity),
                unit_price=f"{item.unit_price:.2f}",
                tax_rate=str(item.tax_rate),
                subtotal=f"{item.subtotal:.2f}",
                tax_amount=f"{item.tax_amount:.2f}",
                total=f"{item.total:.2f}",
            )
            for item in payment.line_items
        ],
    )


@router.get("/references/{scheme}/{document_id}", response_model=ReferenceResponse)
def get_reference(scheme: str, document_id: str):
    try:
        scheme_value = ReferenceScheme(scheme.upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": "UnsupportedScheme", "message": f"Unsupported scheme '{scheme}'"},
        )

    try:
        reference = derive_reference(scheme_value, document_id)
    except FormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": "FormatError", "message": str(exc)},
        ) from exc

    if scheme_value is ReferenceScheme.QRR:
        valid = is_valid_qrr(reference.value)
    elif scheme_value is ReferenceScheme.SCOR:
        valid = is_valid_scor(reference.value)
    else:
        valid = True

    return ReferenceResponse(
        reference_type=scheme_value.value,
        reference=reference.value,
        valid=valid,
    )
