# FILE: app/services/credit_payment_service.py
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from app.core.config import settings
from app.services.amount_words import receipt_amount_in_words
from app.services.billing_math import D0, money2
from app.services.credit_errors import CreditValidationError, DataUnavailable
from app.services.credit_ledger import (
    PAYMENT_METHODS,
    PaymentRecord,
    ReturnRecord,
    SaleRecord,
    StatementKey,
    VisitKey,
    VisitLedger,
)
from app.services.credit_reconcile import (
    CreditSummary,
    find_ledger,
    outstanding_ledgers,
    reconcile,
    summarize,
)
from app.services.credit_statement import (
    Statement,
    StatementMode,
    build_statement,
    ledger_payments,
)
from app.services.credit_store import LedgerStore

logger = logging.getLogger(__name__)


# ============================================================
# Snapshot
# ============================================================
@dataclass(frozen=True)
class LedgerSnapshot:
    sales: Tuple[SaleRecord, ...] = ()
    payments: Tuple[PaymentRecord, ...] = ()
    returns: Tuple[ReturnRecord, ...] = ()
    warnings: Tuple[str, ...] = ()

    def with_payment(self, payment: PaymentRecord) -> "LedgerSnapshot":
        return replace(self, payments=self.payments + (payment, ))

    def ledgers(self) -> Tuple[VisitLedger, ...]:
        return reconcile(self.sales, self.payments, self.returns)


def load_snapshot(store: LedgerStore) -> LedgerSnapshot:
    """
    Read the three streams. A stream that fails comes back empty and adds a
    warning; the balance view is still computed from the rest.
    """
    warnings: List[str] = []

    def stream(fetch: Callable[[], Iterable[Any]]) -> Tuple[Any, ...]:
        try:
            return tuple(fetch())
        except DataUnavailable as e:
            logger.warning("Credit ledger degraded for %s: %s",
                           store.hospital_name, e)
            warnings.append(f"{e.stream} could not be loaded; totals exclude them")
            return ()

    return LedgerSnapshot(
        sales=stream(store.fetch_credit_sales),
        payments=stream(store.fetch_payments),
        returns=stream(store.fetch_returns),
        warnings=tuple(warnings),
    )


# ============================================================
# Outstanding view
# ============================================================
@dataclass(frozen=True)
class OutstandingView:
    ledgers: Tuple[VisitLedger, ...]
    summary: CreditSummary
    warnings: Tuple[str, ...] = ()


def outstanding_view(snapshot: LedgerSnapshot) -> OutstandingView:
    ledgers = outstanding_ledgers(snapshot.ledgers())
    return OutstandingView(ledgers=ledgers,
                           summary=summarize(ledgers),
                           warnings=snapshot.warnings)


def compute_outstanding_ledgers(store: LedgerStore) -> OutstandingView:
    return outstanding_view(load_snapshot(store))


@dataclass(frozen=True)
class Page:
    items: Tuple[Any, ...]
    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def start(self) -> int:
        # "Showing 26 to 50 of 73"
        return 0 if not self.total else (self.page - 1) * self.per_page + 1

    @property
    def end(self) -> int:
        return min(self.page * self.per_page, self.total)


def paginate(items: Sequence[Any], page: int, per_page: int) -> Page:
    page = max(1, int(page or 1))
    per_page = max(1, int(per_page or 1))
    lo = (page - 1) * per_page
    return Page(items=tuple(items[lo:lo + per_page]),
                page=page,
                per_page=per_page,
                total=len(items))


# ============================================================
# Statements
# ============================================================
def compute_statement(store: LedgerStore,
                      key: StatementKey,
                      mode: StatementMode = StatementMode.SALE) -> Statement:
    return build_statement(store.fetch_all_sales(key), mode)


def ledger_payment_history(store: LedgerStore,
                           key: VisitKey) -> List[PaymentRecord]:
    """
    Payments received against one ledger (patient + visit), newest first.
    """
    sales = store.fetch_all_sales(key)
    if not sales:
        raise CreditValidationError("Credit ledger not found", 404)
    patient_id = sales[0].patient_id
    if not patient_id:
        return []
    visit_id = getattr(key, "visit_id", None)
    return ledger_payments(store.fetch_ledger_payments(patient_id, visit_id))


def payment_history(store: LedgerStore,
                    page: int,
                    per_page: Optional[int] = None) -> Page:
    page = max(1, int(page or 1))
    per_page = per_page or settings.PAYMENT_HISTORY_PAGE_SIZE
    rows, total = store.fetch_payment_history(page, per_page)
    return Page(items=tuple(rows), page=page, per_page=per_page, total=total)


# ============================================================
# Receiving a payment
# ============================================================
@dataclass(frozen=True)
class ReceivedPayment:
    payment: PaymentRecord
    ledger: Optional[VisitLedger]


def validate_payment(ledger: Optional[VisitLedger], amount: Decimal,
                     payment_method: str) -> None:
    if amount is None or money2(amount) <= D0:
        raise CreditValidationError("Please enter a valid amount")
    if (payment_method or "").upper() not in PAYMENT_METHODS:
        raise CreditValidationError(
            f"Payment method must be one of {', '.join(PAYMENT_METHODS)}")
    if ledger is None:
        raise CreditValidationError("Credit ledger not found", 404)
    if not ledger.patient_id:
        raise CreditValidationError(
            "Walk-in bill has no patient id; payment cannot be attributed")
    if money2(amount) > ledger.balance:
        raise CreditValidationError(
            f"Payment amount cannot exceed balance ({ledger.balance})", 409)


def receive_payment(
    store: LedgerStore,
    key: VisitKey,
    *,
    amount: Decimal,
    payment_method: str = "CASH",
    payment_reference: Optional[str] = None,
    remarks: Optional[str] = None,
    pharmacy_executive: Optional[str] = None,
    received_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReceivedPayment:
    """
    Validate against a fresh snapshot, append, then recompute the ledger from
    that same snapshot plus the stored payment. Nothing is patched when the
    append fails.
    """
    snapshot = load_snapshot(store)
    if snapshot.warnings:
        raise CreditValidationError(
            "Ledger data is incomplete; refresh before receiving payment", 503)

    ledger = find_ledger(snapshot.ledgers(), key)
    validate_payment(ledger, amount, payment_method)

    try:
        patient_uuid = store.resolve_patient_key(ledger.patient_id)
    except DataUnavailable as e:
        logger.warning("Patient lookup failed for %s: %s", ledger.patient_id, e)
        patient_uuid = None

    record = PaymentRecord(
        id=str(uuid.uuid4()),
        patient_id=ledger.patient_id,
        patient_name=ledger.patient_name,
        visit_id=ledger.visit_id,
        amount=money2(amount),
        payment_method=payment_method.upper(),
        payment_reference=(payment_reference or None),
        remarks=(remarks or None),
        pharmacy_executive=(pharmacy_executive or None),
        received_by=received_by or "Unknown",
        payment_date=now or datetime.utcnow(),
    )
    saved = store.append_payment(record, patient_uuid=patient_uuid)
    logger.info("Credit payment %s of %s received for %s", saved.id,
                saved.amount, ledger.label)

    updated = find_ledger(snapshot.with_payment(saved).ledgers(), key)
    return ReceivedPayment(payment=saved, ledger=updated)


# ============================================================
# Receipts
# ============================================================
@dataclass(frozen=True)
class PaymentReceipt:
    receipt_no: str
    received_from: str
    amount_in_words: str
    payment_method: str
    remarks: str
    payment_date: datetime
    amount: Decimal
    amount_display: str
    pharmacy_executive: str


def build_receipt(payment: PaymentRecord,
                  currency_word: Optional[str] = None) -> PaymentReceipt:
    name = payment.patient_name or "N/A"
    remarks = f"Being payment received towards pharmacy amt from pt. {name}"
    if payment.payment_reference:
        remarks += f" Ref: {payment.payment_reference}"

    amount = money2(payment.amount)
    return PaymentReceipt(
        receipt_no=payment.id[:8].upper(),
        received_from=f"Mr./Ms. {name}({payment.patient_id or 'N/A'})",
        amount_in_words=receipt_amount_in_words(
            amount, currency_word or settings.RECEIPT_CURRENCY_WORD),
        payment_method=payment.payment_method or "N/A",
        remarks=remarks,
        payment_date=payment.payment_date,
        amount=amount,
        amount_display=f"₹{amount:.2f}/-",
        pharmacy_executive=payment.pharmacy_executive or "N/A",
    )


def get_receipt(store: LedgerStore, payment_id: str) -> PaymentReceipt:
    payment = store.get_payment(payment_id)
    if payment is None:
        raise CreditValidationError("Payment not found", 404)
    return build_receipt(payment)
