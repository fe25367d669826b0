# Import all models so their tables are registered on Base.metadata
from models.users import User
from models.warehouse import Warehouse
from models.product import Product, ProductStock
from models.stock import StockLog, StockReason
from models.supplier import Supplier
from models.customer import Customer
from models.purchase import Purchase, PurchaseItem, PurchaseStatus, PurchasePaymentStatus
from models.order import Order, OrderItem, OrderStatus, OrderChannel, PaymentMethod
from models.cart import Cart, CartItem
from models.log import Log

__all__ = [
    "User", "Warehouse", "Product", "ProductStock", "StockLog", "StockReason",
    "Supplier", "Customer", "Purchase", "PurchaseItem", "PurchaseStatus",
    "PurchasePaymentStatus", "Order", "OrderItem", "OrderStatus", "OrderChannel",
    "PaymentMethod", "Cart", "CartItem", "Log",
]
