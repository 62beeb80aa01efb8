# FILE: app/services/credit_reconcile.py
"""
Credit reconciliation passes.

    sales ──aggregate_visits──> ledgers
          ──match_payments────> ledgers (paid_total)
          ──attribute_returns─> ledgers (return_total)
          ──outstanding_ledgers> balance > 0, highest first

Each pass is a pure function: it takes a tuple of ledgers and returns a new
one, in the same (creation) order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.services.billing_math import D0, money2, sum_money
from app.services.credit_ledger import (
    PaymentRecord,
    ReturnRecord,
    SaleRecord,
    VisitKey,
    VisitLedger,
    visit_key_for,
)

logger = logging.getLogger(__name__)

Ledgers = Tuple[VisitLedger, ...]


# ============================================================
# Visit aggregation
# ============================================================
def aggregate_visits(sales: Iterable[SaleRecord],
                     *,
                     credit_only: bool = True) -> Ledgers:
    """
    Group sales into one ledger per visit; walk-ins get one ledger per sale.

    Buckets come out in first-appearance order of the input, so callers that
    need a reproducible order must pass sales in a reproducible order (see
    chronological()).
    """
    order: List[VisitKey] = []
    buckets: Dict[VisitKey, List[SaleRecord]] = {}

    for sale in sales:
        if credit_only and not sale.is_credit:
            continue
        key = visit_key_for(sale)
        if key not in buckets:
            buckets[key] = []
            order.append(key)
        buckets[key].append(sale)

    out: List[VisitLedger] = []
    for key in order:
        bucket = buckets[key]
        first = bucket[0]
        out.append(
            VisitLedger(
                key=key,
                patient_id=first.patient_id,
                patient_name=first.patient_name or "Walk-in",
                visit_id=first.visit_id,
                sales=tuple(bucket),
                credit_total=sum_money(s.total_amount for s in bucket),
            ))
    return tuple(out)


def chronological(sales: Iterable[SaleRecord]) -> List[SaleRecord]:
    return sorted(sales, key=lambda s: (s.sale_date, s.sale_id))


# ============================================================
# Payment matching
# ============================================================
def _payment_target(ledgers: Sequence[VisitLedger],
                    by_visit: Dict[str, int],
                    payment: PaymentRecord) -> Optional[int]:
    if payment.visit_id and payment.visit_id in by_visit:
        return by_visit[payment.visit_id]

    # legacy fallback: first bucket (creation order) of the same patient
    if not payment.patient_id:
        return None
    for idx, led in enumerate(ledgers):
        if led.patient_id == payment.patient_id:
            return idx
    return None


def match_payments(ledgers: Sequence[VisitLedger],
                   payments: Iterable[PaymentRecord]) -> Ledgers:
    """
    Attribute every payment to at most one ledger.

    1. exact visit_id match always wins
    2. otherwise the first ledger of the same patient_id
    3. otherwise the payment lands nowhere

    Rule 2 is best effort: with two open visits for one patient a legacy
    payment always goes to the older bucket.
    """
    by_visit: Dict[str, int] = {}
    for idx, led in enumerate(ledgers):
        if led.visit_id and led.visit_id not in by_visit:
            by_visit[led.visit_id] = idx

    paid: List[Decimal] = [D0 for _ in ledgers]

    for payment in payments:
        idx = _payment_target(ledgers, by_visit, payment)
        if idx is None:
            logger.debug("Credit payment %s (patient=%s visit=%s) matched no ledger",
                         payment.id, payment.patient_id, payment.visit_id)
            continue
        if payment.visit_id != ledgers[idx].visit_id:
            logger.debug("Credit payment %s attributed by patient fallback to %s",
                         payment.id, ledgers[idx].label)
        paid[idx] = money2(paid[idx] + money2(payment.amount))

    return tuple(
        replace(led, paid_total=paid[idx]) for idx, led in enumerate(ledgers))


# ============================================================
# Return attribution
# ============================================================
def attribute_returns(ledgers: Sequence[VisitLedger],
                      returns: Iterable[ReturnRecord]) -> Ledgers:
    refunds: Dict[int, Decimal] = {}
    for ret in returns:
        sid = int(ret.original_sale_id)
        refunds[sid] = money2(refunds.get(sid, D0) + money2(ret.net_refund))

    return tuple(
        replace(led,
                return_total=sum_money(
                    refunds.get(sid, D0) for sid in sorted(led.sale_ids)))
        for led in ledgers)


# ============================================================
# Balances
# ============================================================
def reconcile(sales: Iterable[SaleRecord],
              payments: Iterable[PaymentRecord],
              returns: Iterable[ReturnRecord]) -> Ledgers:
    """
    Full pipeline over one snapshot; every ledger, including settled ones.
    """
    ledgers = aggregate_visits(chronological(sales))
    ledgers = match_payments(ledgers, payments)
    return attribute_returns(ledgers, returns)


def outstanding_ledgers(ledgers: Iterable[VisitLedger]) -> Ledgers:
    # sorted() is stable: equal balances keep creation order
    pending = [led for led in ledgers if led.balance > D0]
    return tuple(sorted(pending, key=lambda led: led.balance, reverse=True))


def find_ledger(ledgers: Iterable[VisitLedger],
                key: VisitKey) -> Optional[VisitLedger]:
    for led in ledgers:
        if led.key == key:
            return led
    return None


@dataclass(frozen=True)
class CreditSummary:
    count: int
    total_credit: Decimal
    total_paid: Decimal
    total_returns: Decimal
    total_balance: Decimal


def summarize(ledgers: Sequence[VisitLedger]) -> CreditSummary:
    return CreditSummary(
        count=len(ledgers),
        total_credit=sum_money(led.credit_total for led in ledgers),
        total_paid=sum_money(led.paid_total for led in ledgers),
        total_returns=sum_money(led.return_total for led in ledgers),
        total_balance=sum_money(led.balance for led in ledgers),
    )


def search_ledgers(ledgers: Iterable[VisitLedger],
                   term: Optional[str]) -> Ledgers:
    """
    Case-insensitive substring match on patient name or patient id.
    """
    q = (term or "").strip().lower()
    if not q:
        return tuple(ledgers)
    return tuple(
        led for led in ledgers
        if q in (led.patient_name or "").lower()
        or q in (led.patient_id or "").lower())
