# app/services/billing_math.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

Q2 = Decimal("0.01")
D0 = Decimal("0.00")


def D(x) -> Decimal:
    try:
        return Decimal(str(x or 0))
    except Exception:
        return Decimal("0")


def money2(x) -> Decimal:
    return D(x).quantize(Q2, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable) -> Decimal:
    """
    Exact 2-place sum; never goes through float.
    """
    total = D0
    for v in values:
        total += money2(v)
    return money2(total)
