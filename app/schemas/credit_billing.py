# FILE: app/schemas/credit_billing.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreditBillOut(BaseModel):
    sale_id: int
    bill_number: Optional[str] = None
    bill_reference: str
    sale_date: datetime
    total_amount: Decimal
    discount: Decimal
    payment_method: str

    model_config = ConfigDict(from_attributes=True)


class VisitLedgerOut(BaseModel):
    label: str
    patient_id: Optional[str] = None
    patient_name: str
    visit_id: Optional[str] = None
    visit_type: str
    credit_total: Decimal
    paid_total: Decimal
    return_total: Decimal
    balance: Decimal
    sales: List[CreditBillOut] = []

    model_config = ConfigDict(from_attributes=True)


class CreditSummaryOut(BaseModel):
    count: int
    total_credit: Decimal
    total_paid: Decimal
    total_returns: Decimal
    total_balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryOut(BaseModel):
    date: datetime
    bill_reference: str
    sale_id: int
    payment_method: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class SaleStatementTotalsOut(BaseModel):
    debit: Decimal
    credit: Decimal
    running_balance: Decimal

    model_config = ConfigDict(from_attributes=True)


class SaleStatementOut(BaseModel):
    mode: Literal["sale"] = "sale"
    entries: List[LedgerEntryOut]
    totals: SaleStatementTotalsOut


class CollectionEntryOut(BaseModel):
    date: datetime
    bill_reference: str
    sale_id: int
    payment_method: str
    paid_amt: Decimal
    discount: Decimal
    balance_contribution: Decimal

    model_config = ConfigDict(from_attributes=True)


class CollectionTotalsOut(BaseModel):
    paid_amt: Decimal
    discount: Decimal
    balance: Decimal


class CollectionStatementOut(BaseModel):
    mode: Literal["payment"] = "payment"
    entries: List[CollectionEntryOut]
    totals: CollectionTotalsOut


class CreditPaymentIn(BaseModel):
    key: str
    amount: Decimal
    payment_method: Literal["CASH", "CARD", "UPI"] = "CASH"
    payment_reference: Optional[str] = None
    remarks: Optional[str] = None
    pharmacy_executive: Optional[str] = None

    @field_validator("key")
    @classmethod
    def _key(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("key is required")
        return v

    @field_validator("payment_method", mode="before")
    @classmethod
    def _method(cls, v):
        return str(v or "CASH").strip().upper()


class CreditPaymentOut(BaseModel):
    id: str
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    visit_id: Optional[str] = None
    amount: Decimal
    payment_method: str
    payment_reference: Optional[str] = None
    remarks: Optional[str] = None
    pharmacy_executive: Optional[str] = None
    received_by: Optional[str] = None
    payment_date: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceivedPaymentOut(BaseModel):
    payment: CreditPaymentOut
    ledger: Optional[VisitLedgerOut] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentReceiptOut(BaseModel):
    receipt_no: str
    received_from: str
    amount_in_words: str
    payment_method: str
    remarks: str
    payment_date: datetime
    amount: Decimal
    amount_display: str
    pharmacy_executive: str

    model_config = ConfigDict(from_attributes=True)


class AmountInWordsOut(BaseModel):
    amount: Decimal
    rounded: int
    words: str
    receipt_text: str
