# backend/utils/costing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from exceptions import InvalidRestockError


@dataclass(frozen=True)
class CostUpdate:
    quantity: int
    unit_cost: int


def round_currency(value: Decimal) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def weighted_average_cost(q0: int, c0: int, qin: int, cin: int) -> CostUpdate:
    """
    Blend an incoming batch into the current average unit cost.

    q0/c0 are the quantity on hand and its average cost, qin/cin the received
    quantity and its unit cost. Returns the new total quantity and the new
    average cost rounded to whole currency units.
    """
    if qin is None or qin <= 0:
        raise InvalidRestockError("Restock quantity must be greater than 0", quantity=qin)
    if cin is None or cin <= 0:
        raise InvalidRestockError("Restock unit cost must be greater than 0", unit_cost=cin)
    if q0 < 0 or c0 < 0:
        raise InvalidRestockError("Current quantity and cost cannot be negative", quantity=q0, unit_cost=c0)

    q1 = q0 + qin
    if q1 == 0:
        return CostUpdate(quantity=q1, unit_cost=c0)

    blended = (Decimal(q0) * Decimal(c0) + Decimal(qin) * Decimal(cin)) / Decimal(q1)
    return CostUpdate(quantity=q1, unit_cost=round_currency(blended))
