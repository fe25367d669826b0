"""Point-of-sale checkout, cart checkout and the order status machine."""
import pytest

from models.order import Order, OrderStatus
from models.product import Product
from models.stock import StockLog, StockReason
from services.orders import can_transition


def _stock(db, product_id):
    db.expire_all()
    return db.query(Product).filter(Product.id == product_id).one().stock


class TestStatusMachine:

    @pytest.mark.parametrize("old,new", [
        (OrderStatus.WAITING, OrderStatus.PROCESSING),
        (OrderStatus.WAITING, OrderStatus.DONE),
        (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
    ])
    def test_allowed(self, old, new):
        assert can_transition(old, new)

    @pytest.mark.parametrize("old,new", [
        (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
        (OrderStatus.DONE, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.WAITING),
        (OrderStatus.WAITING, OrderStatus.WAITING),
    ])
    def test_rejected(self, old, new):
        assert not can_transition(old, new)


class TestPosCheckout:

    def test_cash_sale_deducts_stock_and_returns_change(self, client, db, cashier_headers, make_product):
        beras = make_product("Beras 5kg", price=10000, stock=10)
        kopi = make_product("Kopi Bubuk", price=5000, stock=10)

        res = client.post("/orders/pos", headers=cashier_headers, json={
            "items": [{"product_id": beras.id, "qty": 2}, {"product_id": kopi.id, "qty": 1}],
            "payment_method": "CASH",
            "amount_tendered": 30000,
        })
        assert res.status_code == 201, res.text
        body = res.json()
        assert (body["subtotal"], body["shipping_cost"], body["total"]) == (25000, 0, 25000)
        assert body["change"] == 5000
        assert body["status"] == "DONE"
        assert body["channel"] == "OFFLINE"
        assert body["stock_deducted"] is True

        assert _stock(db, beras.id) == 8
        assert _stock(db, kopi.id) == 9
        sale_logs = db.query(StockLog).filter(StockLog.reference == f"order:{body['id']}").all()
        assert len(sale_logs) == 2
        assert all(log.reason == StockReason.SALE for log in sale_logs)

    def test_short_cash_payment_is_blocked(self, client, db, cashier_headers, make_product):
        beras = make_product(price=10000, stock=10)
        kopi = make_product("Kopi Bubuk", price=5000, stock=10)
        res = client.post("/orders/pos", headers=cashier_headers, json={
            "items": [{"product_id": beras.id, "qty": 2}, {"product_id": kopi.id, "qty": 1}],
            "payment_method": "CASH",
            "amount_tendered": 20000,
        })
        assert res.status_code == 400
        assert res.json()["code"] == "INSUFFICIENT_PAYMENT"
        assert _stock(db, beras.id) == 10
        assert db.query(Order).count() == 0

    def test_insufficient_stock_writes_nothing(self, client, db, cashier_headers, make_product):
        beras = make_product(price=10000, stock=10)
        kopi = make_product("Kopi Bubuk", price=5000, stock=1)
        logs_before = db.query(StockLog).count()

        res = client.post("/orders/pos", headers=cashier_headers, json={
            "items": [{"product_id": beras.id, "qty": 2}, {"product_id": kopi.id, "qty": 3}],
            "payment_method": "QRIS",
        })
        assert res.status_code == 400
        assert res.json()["code"] == "INSUFFICIENT_STOCK"
        assert _stock(db, beras.id) == 10
        assert _stock(db, kopi.id) == 1
        assert db.query(Order).count() == 0
        assert db.query(StockLog).count() == logs_before

    def test_store_courier_fee_and_wholesale_tier(self, client, cashier_headers, make_product):
        gula = make_product(price=17500, stock=50, wholesale_price=16800, min_wholesale_qty=10)
        res = client.post("/orders/pos", headers=cashier_headers, json={
            "items": [{"product_id": gula.id, "qty": 10}],
            "delivery_method": "STORE_COURIER",
            "payment_method": "TRANSFER",
        })
        assert res.status_code == 201, res.text
        body = res.json()
        assert body["items"][0]["unit_price"] == 16800
        assert body["shipping_cost"] == 15000
        assert body["total"] == 168000 + 15000

    def test_customer_cannot_use_pos(self, client, customer_headers, make_product):
        beras = make_product(stock=5)
        res = client.post("/orders/pos", headers=customer_headers, json={
            "items": [{"product_id": beras.id, "qty": 1}], "payment_method": "QRIS",
        })
        assert res.status_code == 403


class TestQuote:

    def test_quote_does_not_touch_stock(self, client, db, cashier_headers, make_product):
        beras = make_product(price=10000, stock=3)
        res = client.post("/orders/quote", headers=cashier_headers, json={
            "items": [{"product_id": beras.id, "qty": 2}],
            "delivery_method": "store_courier",
            "payment_method": "CASH",
            "amount_tendered": 50000,
        })
        assert res.status_code == 200
        assert res.json()["total"] == 35000
        assert res.json()["change"] == 15000
        assert _stock(db, beras.id) == 3

    def test_unknown_delivery_method(self, client, cashier_headers, make_product):
        beras = make_product(stock=3)
        res = client.post("/orders/quote", headers=cashier_headers, json={
            "items": [{"product_id": beras.id, "qty": 1}], "delivery_method": "DRONE",
        })
        assert res.status_code == 400
        assert res.json()["code"] == "UNKNOWN_DELIVERY_METHOD"


class TestCartCheckoutFlow:

    def test_checkout_then_complete_deducts_once(self, client, db, customer_headers, admin_headers, make_product):
        beras = make_product(price=10000, stock=5)

        assert client.post("/cart/add", headers=customer_headers,
                           json={"product_id": beras.id, "qty": 2}).status_code == 200
        res = client.post("/orders/checkout", headers=customer_headers, json={"delivery_method": "PICKUP"})
        assert res.status_code == 201, res.text
        order = res.json()
        assert order["status"] == "WAITING"
        assert order["channel"] == "WEBSITE"
        assert _stock(db, beras.id) == 5

        # Cart was consumed
        assert client.get("/cart", headers=customer_headers).json()["items"] == []

        res = client.patch(f"/orders/{order['id']}/status", headers=admin_headers, json={"status": "PROCESSING"})
        assert res.status_code == 200
        res = client.patch(f"/orders/{order['id']}/status", headers=admin_headers, json={"status": "DONE"})
        assert res.status_code == 200
        assert res.json()["stock_deducted"] is True
        assert _stock(db, beras.id) == 3

        res = client.patch(f"/orders/{order['id']}/status", headers=admin_headers, json={"status": "CANCELLED"})
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_STATUS_TRANSITION"
        assert _stock(db, beras.id) == 3

    def test_backwards_move_is_rejected(self, client, customer_headers, admin_headers, make_product):
        beras = make_product(stock=5)
        client.post("/cart/add", headers=customer_headers, json={"product_id": beras.id, "qty": 1})
        oid = client.post("/orders/checkout", headers=customer_headers, json={}).json()["id"]

        client.patch(f"/orders/{oid}/status", headers=admin_headers, json={"status": "SHIPPED"})
        res = client.patch(f"/orders/{oid}/status", headers=admin_headers, json={"status": "PROCESSING"})
        assert res.status_code == 400

    def test_customers_only_see_their_orders(self, client, customer_headers, cashier_headers, make_product):
        beras = make_product(stock=5)
        client.post("/orders/pos", headers=cashier_headers, json={
            "items": [{"product_id": beras.id, "qty": 1}], "payment_method": "QRIS",
        })
        assert client.get("/orders", headers=customer_headers).json()["total"] == 0
        assert client.get("/orders", headers=cashier_headers).json()["total"] == 1
