from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable


def to_number(value: Any) -> float:
    """Coerce a loosely typed amount to a finite float; anything else is 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        n = float(value)
    elif isinstance(value, str):
        try:
            n = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return n if math.isfinite(n) else 0.0


def _finite(n: float) -> float:
    return n if math.isfinite(n) else 0.0


def line_total(item: Any) -> float:
    return _finite(to_number(getattr(item, "qty", None)) * to_number(getattr(item, "unit", None)))


def subtotal(items: Iterable[Any]) -> float:
    return _finite(sum(line_total(it) for it in items))


def tax(subtotal_amount: float, tax_rate: Any) -> float:
    return _finite(to_number(subtotal_amount) * to_number(tax_rate))


def total(subtotal_amount: float, tax_amount: float) -> float:
    return _finite(to_number(subtotal_amount) + to_number(tax_amount))


@dataclass(frozen=True)
class Totals:
    subtotal: float
    tax: float
    total: float


def price_quote(items: Iterable[Any], tax_rate: Any) -> Totals:
    sub = subtotal(items)
    tx = tax(sub, tax_rate)
    return Totals(subtotal=sub, tax=tx, total=total(sub, tx))


def money(n: Any) -> str:
    return f"${to_number(n):.2f}"


def percent(rate: Any) -> str:
    return f"{to_number(rate) * 100:.2f}%"
