"""
Fixed-point helpers for weights and money.
Weights carry 3 decimal places, prices and totals carry 2, both rounded half-up.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
MILLIGRAM = Decimal("0.001")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without inheriting binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Number) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_weight(value: Number) -> Decimal:
    """Round to milligrams, half-up."""
    return to_decimal(value).quantize(MILLIGRAM, rounding=ROUND_HALF_UP)


def calculate_total_price(weight_grams: Number, price_per_gram: Number) -> Decimal:
    """total_price = weight x price, rounded to cents (10.5 g at 65.75 -> 690.38)."""
    return round_money(to_decimal(weight_grams) * to_decimal(price_per_gram))
