# backend/utils/pricing.py
from dataclasses import dataclass
from typing import Iterable, Tuple

from config import settings
from exceptions import InsufficientPaymentError, UnknownDeliveryMethodError

# Delivery methods offered at checkout
PICKUP = "PICKUP"                # Ambil di Toko
STORE_COURIER = "STORE_COURIER"  # Kurir Toko
RIDE_HAILING = "RIDE_HAILING"    # OJOL, paid by the customer to the driver

SHIPPING_RATES = {
    PICKUP: 0,
    STORE_COURIER: settings.STORE_COURIER_FEE,
    RIDE_HAILING: 0,
}


@dataclass(frozen=True)
class OrderTotals:
    subtotal: int
    shipping_cost: int
    total: int


def shipping_cost_for(delivery_method: str) -> int:
    key = (delivery_method or "").upper()
    if key not in SHIPPING_RATES:
        raise UnknownDeliveryMethodError(f"Unknown delivery method: {delivery_method}",
                                         allowed=sorted(SHIPPING_RATES))
    return SHIPPING_RATES[key]


def compute_totals(lines: Iterable[Tuple[int, int]], delivery_method: str) -> OrderTotals:
    """Totals for (unit_price, quantity) pairs shipped with the given method."""
    subtotal = sum(unit_price * qty for unit_price, qty in lines)
    shipping = shipping_cost_for(delivery_method)
    return OrderTotals(subtotal=subtotal, shipping_cost=shipping, total=subtotal + shipping)


def compute_change(total: int, tendered: int) -> int:
    change = (tendered or 0) - total
    if change < 0:
        raise InsufficientPaymentError("Amount tendered is less than the order total",
                                       total=total, tendered=tendered or 0)
    return change


def unit_price_for(product, qty: int) -> int:
    # Wholesale tier needs a threshold above one unit
    min_qty = product.min_wholesale_qty or 1
    if product.wholesale_price and min_qty > 1 and qty >= min_qty:
        return product.wholesale_price
    return product.price
