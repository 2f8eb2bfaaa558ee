# MIT License
# Copyright (c) 2025 Hashborn

"""Conversions between human token amounts and minimal units."""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Union

SUPPORTED_DECIMALS = (18, 9, 6)

Number = Union[int, float, str, Decimal]


def _check_decimals(d: int):
    if d not in SUPPORTED_DECIMALS:
        raise ValueError(f"not supported decimal: {d}")


def to_wei(value: Number, d: int = 18) -> int:
    """Parse a human amount ("1.5", 2, Decimal) into minimal units, truncating excess digits."""
    _check_decimals(d)
    scaled = Decimal(str(value)) * (Decimal(10) ** d)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_wei(value: int, d: int = 18) -> float:
    _check_decimals(d)
    return float(Decimal(value) / (Decimal(10) ** d))


def to_usdc(value: Number) -> int:
    return to_wei(value, 6)


def from_usdc(value: int) -> float:
    return from_wei(value, 6)


def round_to(n: float, d: int = 2) -> float:
    quantum = Decimal(1).scaleb(-d)
    return float(Decimal(str(n)).quantize(quantum, rounding=ROUND_HALF_UP))
