# FILE: app/services/amount_words.py
from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR, localcontext
from typing import Any, List

from app.services.billing_math import D

_ONES = [
    "",
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
]
_TENS = [
    "", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy",
    "Eighty", "Ninety"
]

# Indian system: crore, lakh, thousand, hundred
_GROUPS = (
    (10000000, "Crore"),
    (100000, "Lakh"),
    (1000, "Thousand"),
    (100, "Hundred"),
)


def _two_digits(n: int) -> str:
    if n < 20:
        return _ONES[n]
    return (_TENS[n // 10] + (" " + _ONES[n % 10] if n % 10 else "")).strip()


def int_to_words_indian(n: int) -> str:
    """
    12345678 -> "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight"

    Group counts are rendered recursively, so 1500000000 gives
    "One Hundred Fifty Crore".
    """
    n = int(n)
    if n == 0:
        return "Zero"
    if n < 0:
        return "Minus " + int_to_words_indian(abs(n))

    parts: List[str] = []
    for size, word in _GROUPS:
        count = n // size
        if count:
            parts.append(f"{int_to_words_indian(count)} {word}")
            n %= size
    if n:
        parts.append(_two_digits(n))
    return " ".join(parts)


def round_to_units(amount: Any) -> int:
    """
    Halves go up toward +infinity: 2.5 -> 3, -2.5 -> -2.

    Precision is widened to the size of the amount, so very large values
    round exactly instead of overflowing the default 28-digit context.
    """
    value = D(amount)
    if not value.is_finite():
        raise ValueError(f"Cannot round {amount!r} to whole units")
    exact = max(value.adjusted(), 0) + max(-value.as_tuple().exponent, 1) + 2
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact)
        return int((value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def convert_amount_to_words(amount: Any) -> str:
    """
    Whole-unit words for a money amount (paise are rounded away).
    """
    return int_to_words_indian(round_to_units(amount))


def receipt_amount_in_words(amount: Any, currency_word: str = "Rupee") -> str:
    # "Rupee Five Hundred Only"
    return f"{currency_word} {convert_amount_to_words(amount)} Only"
