# FILE: app/services/credit_statement.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Tuple

from app.services.billing_math import D0, money2, sum_money
from app.services.credit_ledger import PaymentRecord, SaleRecord
from app.services.credit_reconcile import chronological


class StatementMode(str, enum.Enum):
    SALE = "sale"
    PAYMENT = "payment"


@dataclass(frozen=True)
class LedgerEntry:
    """
    One bill in a statement.

    debit   -> collected at the counter (0 for CREDIT bills)
    credit  -> still owed (bill total for CREDIT bills)
    running_balance -> cumulative credit column; debits do not reduce it
    """
    date: datetime
    bill_reference: str
    sale_id: int
    payment_method: str
    debit: Decimal
    credit: Decimal
    discount: Decimal
    running_balance: Decimal

    # collections-view names for the same columns
    @property
    def paid_amt(self) -> Decimal:
        return self.debit

    @property
    def balance_contribution(self) -> Decimal:
        return self.credit


@dataclass(frozen=True)
class StatementTotals:
    debit: Decimal
    credit: Decimal
    discount: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class Statement:
    mode: StatementMode
    entries: Tuple[LedgerEntry, ...]
    totals: StatementTotals


def build_statement(sales: Iterable[SaleRecord],
                    mode: StatementMode = StatementMode.SALE) -> Statement:
    running = D0
    entries: List[LedgerEntry] = []

    for sale in chronological(sales):
        amount = money2(sale.total_amount)
        if sale.is_credit:
            debit, credit = D0, amount
        else:
            debit, credit = amount, D0
        running = money2(running + credit)
        entries.append(
            LedgerEntry(
                date=sale.sale_date,
                bill_reference=sale.bill_reference,
                sale_id=sale.sale_id,
                payment_method=(sale.payment_method or "").upper(),
                debit=debit,
                credit=credit,
                discount=money2(sale.discount),
                running_balance=running,
            ))

    totals = StatementTotals(
        debit=sum_money(e.debit for e in entries),
        credit=sum_money(e.credit for e in entries),
        discount=sum_money(e.discount for e in entries),
        running_balance=entries[-1].running_balance if entries else D0,
    )
    return Statement(mode=StatementMode(mode),
                     entries=tuple(entries),
                     totals=totals)


def ledger_payments(payments: Iterable[PaymentRecord]) -> List[PaymentRecord]:
    """
    Payment-received sub-ledger: newest first.
    """
    return sorted(payments,
                  key=lambda p: (p.payment_date, p.id),
                  reverse=True)
