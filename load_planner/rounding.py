from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP


DISPLAY_QUANT = Decimal("0.001")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Decimal, quant: Decimal = Decimal("1")) -> Decimal:
    return value.quantize(quant, rounding=ROUND_HALF_UP)


def round_pct(numerator: Decimal, denominator: Decimal) -> int:
    if denominator <= 0:
        return 0
    return int(round_half_up(numerator / denominator * Decimal("100")))


def display(value: Decimal) -> Decimal:
    return round_half_up(value, DISPLAY_QUANT)
