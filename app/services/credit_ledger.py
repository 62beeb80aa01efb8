# FILE: app/services/credit_ledger.py
"""
Record and ledger types for pharmacy credit reconciliation.

Everything here is immutable: the aggregation passes build new ledgers with
dataclasses.replace() instead of mutating shared buckets.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple, Union

from app.services.billing_math import D0, money2

CREDIT = "CREDIT"
PAYMENT_METHODS = ("CASH", "CARD", "UPI")

WALKIN_PREFIX = "walkin-"
VISIT_ESCAPE = "visit:"
UNKNOWN_PATIENT = "unknown"
IPD_VISIT_PREFIX = "IH"


# -----------------------------
# Records (one row per store event)
# -----------------------------
@dataclass(frozen=True)
class SaleRecord:
    sale_id: int
    patient_name: str
    total_amount: Decimal
    payment_method: str
    sale_date: datetime
    visit_id: Optional[str] = None
    patient_id: Optional[str] = None
    discount: Decimal = D0
    bill_number: Optional[str] = None

    @property
    def is_credit(self) -> bool:
        return (self.payment_method or "").upper() == CREDIT

    @property
    def bill_reference(self) -> str:
        return self.bill_number or f"#{self.sale_id}"


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    amount: Decimal
    payment_method: str
    payment_date: datetime
    patient_id: Optional[str] = None
    visit_id: Optional[str] = None  # None on legacy rows
    payment_reference: Optional[str] = None
    received_by: Optional[str] = None
    patient_name: Optional[str] = None
    remarks: Optional[str] = None
    pharmacy_executive: Optional[str] = None

    @property
    def is_legacy(self) -> bool:
        return not self.visit_id


@dataclass(frozen=True)
class ReturnRecord:
    original_sale_id: int
    net_refund: Decimal


# -----------------------------
# Visit keys
# -----------------------------
@dataclass(frozen=True)
class VisitRef:
    visit_id: str

    @property
    def label(self) -> str:
        # ids that would read as a walk-in (or as an escaped id) get a prefix
        if self.visit_id.startswith((WALKIN_PREFIX, VISIT_ESCAPE)):
            return f"{VISIT_ESCAPE}{self.visit_id}"
        return self.visit_id


@dataclass(frozen=True)
class WalkinRef:
    """A walk-in ledger is one sale; the sale id alone identifies it."""
    patient_id: Optional[str] = field(compare=False)
    sale_id: int

    @property
    def label(self) -> str:
        return f"{WALKIN_PREFIX}{self.patient_id or UNKNOWN_PATIENT}-{self.sale_id}"


VisitKey = Union[VisitRef, WalkinRef]


@dataclass(frozen=True)
class PatientRef:
    """Whole patient history; statements only, never a ledger key."""
    patient_id: str

    @property
    def label(self) -> str:
        return self.patient_id


StatementKey = Union[VisitRef, WalkinRef, PatientRef]


def visit_key_for(sale: SaleRecord) -> VisitKey:
    if sale.visit_id:
        return VisitRef(sale.visit_id)
    return WalkinRef(sale.patient_id, sale.sale_id)


def parse_visit_key(label: str) -> VisitKey:
    """
    Inverse of VisitKey.label.

    "IH25-0012"          -> VisitRef("IH25-0012")
    "walkin-P1-17"       -> WalkinRef("P1", 17)
    "walkin-unknown-17"  -> WalkinRef(None, 17)
    "visit:walkin-7"     -> VisitRef("walkin-7")
    """
    raw = (label or "").strip()
    if not raw:
        raise ValueError("ledger key is required")

    if raw.startswith(VISIT_ESCAPE):
        visit_id = raw[len(VISIT_ESCAPE):]
        if not visit_id:
            raise ValueError(f"Invalid visit ledger key: {raw}")
        return VisitRef(visit_id)

    if raw.startswith(WALKIN_PREFIX):
        body = raw[len(WALKIN_PREFIX):]
        patient, sep, sale = body.rpartition("-")
        if sep and patient and sale.isdigit():
            return WalkinRef(None if patient == UNKNOWN_PATIENT else patient,
                             int(sale))
        raise ValueError(f"Invalid walk-in ledger key: {raw}")

    return VisitRef(raw)


# -----------------------------
# Derived ledger
# -----------------------------
@dataclass(frozen=True)
class VisitLedger:
    key: VisitKey
    patient_id: Optional[str]
    patient_name: str
    visit_id: Optional[str]
    sales: Tuple[SaleRecord, ...] = ()
    credit_total: Decimal = D0
    paid_total: Decimal = D0
    return_total: Decimal = D0

    @property
    def sale_ids(self) -> FrozenSet[int]:
        return frozenset(s.sale_id for s in self.sales)

    @property
    def balance(self) -> Decimal:
        # never stored; always the ledger identity
        return money2(self.credit_total - self.paid_total - self.return_total)

    @property
    def visit_type(self) -> str:
        if not self.visit_id:
            return "WALK-IN"
        return "IPD" if self.visit_id.startswith(IPD_VISIT_PREFIX) else "OPD"

    @property
    def label(self) -> str:
        return self.key.label
