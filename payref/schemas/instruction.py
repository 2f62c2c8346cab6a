from pydantic import BaseModel, Field
from typing import List, Optional, Union


class LineItemRecord(BaseModel):
    description: Optional[str] = None
    kind: Optional[str] = None

    # Quantité et montants en texte libre
    quantity: Optional[Union[str, float]] = None
    unit_price: Optional[Union[str, float]] = None
    tax_percentage: Optional[Union[str, float]] = None
    amount: Optional[Union[str, float]] = None


class InvoiceRecord(BaseModel):
    # Identifiant du document
    number: str

    # Montants en texte libre ("CHF 1'234.50", "1.234,50 €", ...)
    amount: Optional[Union[str, float]] = None
    tax_amount: Optional[Union[str, float]] = None

    currency: Optional[str] = None
    notes: Optional[str] = None

    line_items: List[LineItemRecord] = []


class PaymentInstructionResponse(BaseModel):
    amount: str
    currency: str
    account: str
    account_category: str
    reference_type: str
    reference: str
    additional_information: str = Field(max_length=140)


class LineItemResponse(BaseModel):
    description: str
    quantity: str
    unit_price: str
    tax_rate: str
    subtotal: str
    tax_amount: str
    total: str


class InvoicePaymentResponse(BaseModel):
    number: str
    subtotal: str
    tax_total: str
    total: str
    payment: PaymentInstructionResponse
    line_items: List[LineItemResponse] = []


class ReferenceResponse(BaseModel):
    reference_type: str
    reference: str
    valid: bool
