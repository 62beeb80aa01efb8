# FILE: app/api/routes_credit_payments.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import current_user_name, get_ledger_store
from app.api.response import ok, page_meta
from app.core.config import settings
from app.schemas.credit_billing import (
    AmountInWordsOut,
    CollectionEntryOut,
    CollectionStatementOut,
    CollectionTotalsOut,
    CreditPaymentIn,
    CreditPaymentOut,
    CreditSummaryOut,
    LedgerEntryOut,
    PaymentReceiptOut,
    ReceivedPaymentOut,
    SaleStatementOut,
    SaleStatementTotalsOut,
    VisitLedgerOut,
)
from app.services.amount_words import (
    convert_amount_to_words,
    receipt_amount_in_words,
    round_to_units,
)
from app.services.credit_errors import CreditValidationError
from app.services.credit_ledger import PatientRef, StatementKey, VisitKey, parse_visit_key
from app.services.credit_payment_service import (
    compute_outstanding_ledgers,
    compute_statement,
    get_receipt,
    ledger_payment_history,
    paginate,
    payment_history,
    receive_payment,
)
from app.services.credit_reconcile import search_ledgers
from app.services.credit_statement import Statement, StatementMode
from app.services.credit_store import LedgerStore

router = APIRouter(prefix="/pharmacy/credit", tags=["Pharmacy Credit Payments"])


def _ledger_key(key: Optional[str]) -> VisitKey:
    try:
        return parse_visit_key(key or "")
    except ValueError as e:
        raise CreditValidationError(str(e))


def _statement_key(key: Optional[str],
                   patient_id: Optional[str]) -> StatementKey:
    if key:
        return _ledger_key(key)
    if patient_id and patient_id.strip():
        return PatientRef(patient_id.strip())
    raise CreditValidationError("Provide a ledger key or patient_id")


def _statement_out(st: Statement):
    if st.mode == StatementMode.PAYMENT:
        return CollectionStatementOut(
            entries=[CollectionEntryOut.model_validate(e) for e in st.entries],
            totals=CollectionTotalsOut(
                paid_amt=st.totals.debit,
                discount=st.totals.discount,
                balance=st.totals.credit,
            ),
        )
    return SaleStatementOut(
        entries=[LedgerEntryOut.model_validate(e) for e in st.entries],
        totals=SaleStatementTotalsOut.model_validate(st.totals),
    )


# -------------------- Outstanding --------------------
@router.get("/patients")
def list_credit_patients(
        store: LedgerStore = Depends(get_ledger_store),
        search: Optional[str] = Query(None, description="patient name or id"),
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1, le=200),
):
    view = compute_outstanding_ledgers(store)
    filtered = search_ledgers(view.ledgers, search)
    pg = paginate(filtered, page, page_size or settings.CREDIT_PAGE_SIZE)

    return ok(
        {
            "items": [VisitLedgerOut.model_validate(led) for led in pg.items],
            "summary": CreditSummaryOut.model_validate(view.summary),
        },
        meta=page_meta(pg, warnings=list(view.warnings)),
    )


# -------------------- Ledger detail --------------------
@router.get("/ledgers/statement")
def ledger_statement(
        store: LedgerStore = Depends(get_ledger_store),
        key: Optional[str] = Query(None, description="visit id or walk-in key"),
        patient_id: Optional[str] = Query(None),
        mode: StatementMode = Query(StatementMode.SALE),
):
    st = compute_statement(store, _statement_key(key, patient_id), mode)
    return ok(_statement_out(st))


@router.get("/ledgers/payments")
def ledger_payments(
        key: str = Query(...),
        store: LedgerStore = Depends(get_ledger_store),
):
    rows = ledger_payment_history(store, _ledger_key(key))
    total = sum((p.amount for p in rows), Decimal("0.00"))
    return ok([CreditPaymentOut.model_validate(p) for p in rows],
              meta={"count": len(rows), "total_paid": str(total)})


@router.post("/ledgers/payments", status_code=201)
def receive_credit_payment(
        inp: CreditPaymentIn,
        store: LedgerStore = Depends(get_ledger_store),
        user_name: str = Depends(current_user_name),
):
    res = receive_payment(
        store,
        _ledger_key(inp.key),
        amount=inp.amount,
        payment_method=inp.payment_method,
        payment_reference=inp.payment_reference,
        remarks=inp.remarks,
        pharmacy_executive=inp.pharmacy_executive,
        received_by=user_name,
    )
    return ok(ReceivedPaymentOut.model_validate(res), status_code=201)


# -------------------- History / receipts --------------------
@router.get("/payments")
def list_payment_history(
        store: LedgerStore = Depends(get_ledger_store),
        page: int = Query(1, ge=1),
):
    pg = payment_history(store, page)
    return ok(
        [CreditPaymentOut.model_validate(p) for p in pg.items],
        meta=page_meta(pg),
    )


@router.get("/payments/{payment_id}/receipt")
def payment_receipt(
        payment_id: str,
        store: LedgerStore = Depends(get_ledger_store),
):
    return ok(PaymentReceiptOut.model_validate(get_receipt(store, payment_id)))


@router.get("/amount-in-words")
def amount_in_words(amount: Decimal = Query(...)):
    return ok(
        AmountInWordsOut(
            amount=amount,
            rounded=round_to_units(amount),
            words=convert_amount_to_words(amount),
            receipt_text=receipt_amount_in_words(
                amount, settings.RECEIPT_CURRENCY_WORD),
        ))
