"""Purchases from suppliers: receiving, cost blending, rollback and lifecycle."""
from types import SimpleNamespace

import pytest

from exceptions import InvalidRestockError, InvalidStatusTransitionError
from models.product import Product
from models.purchase import Purchase, PurchaseStatus
from models.stock import StockLog, StockReason
from models.supplier import Supplier
from services import purchasing


@pytest.fixture
def supplier(db):
    s = Supplier(name="CV Sumber Rejeki", phone="+628111")
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def _line(product, quantity, unit_cost):
    return SimpleNamespace(product_id=product.id, quantity=quantity, unit_cost=unit_cost)


class TestReceiveService:

    def test_receive_restocks_every_line(self, db, supplier, make_product, main_warehouse, admin):
        gula = make_product("Gula Pasir 1kg", stock=10, cost=1000)
        kopi = make_product("Kopi Bubuk 165g")
        purchase = purchasing.create_purchase(
            db, supplier_id=supplier.id, items=[_line(gula, 10, 1200), _line(kopi, 5, 2000)], user=admin,
        )
        db.commit()
        assert purchase.total_amount == 10 * 1200 + 5 * 2000

        purchasing.receive_purchase(db, purchase, admin)
        db.commit()
        db.refresh(gula)
        db.refresh(kopi)

        assert (gula.stock, gula.purchase_price) == (20, 1100)
        assert (kopi.stock, kopi.purchase_price) == (5, 2000)
        assert purchase.status == PurchaseStatus.RECEIVED
        assert purchase.received_at is not None

        logs = db.query(StockLog).filter(StockLog.reference == f"purchase:{purchase.id}").all()
        assert len(logs) == 2
        assert {log.reason for log in logs} == {StockReason.PURCHASE_RECEIVED}

    def test_failing_line_rolls_back_all_lines(self, db, supplier, make_product, admin):
        gula = make_product("Gula Pasir 1kg", stock=10, cost=1000)
        kopi = make_product("Kopi Bubuk 165g", stock=3, cost=1500)
        purchase = purchasing.create_purchase(
            db, supplier_id=supplier.id, items=[_line(gula, 10, 1200), _line(kopi, 5, 2000)],
        )
        db.commit()

        # Corrupt the second line in memory only; the first line is restocked before it fails
        purchase.items[1].unit_cost = 0
        with pytest.raises(InvalidRestockError):
            purchasing.receive_purchase(db, purchase, admin)
        db.rollback()

        gula = db.query(Product).filter(Product.id == gula.id).one()
        kopi = db.query(Product).filter(Product.id == kopi.id).one()
        assert (gula.stock, gula.purchase_price) == (10, 1000)
        assert (kopi.stock, kopi.purchase_price) == (3, 1500)
        assert db.get(Purchase, purchase.id).status == PurchaseStatus.PENDING

    def test_receive_twice_is_rejected(self, db, supplier, make_product):
        gula = make_product(stock=1, cost=1000)
        purchase = purchasing.create_purchase(db, supplier_id=supplier.id, items=[_line(gula, 1, 1000)])
        purchasing.receive_purchase(db, purchase)
        db.commit()
        with pytest.raises(InvalidStatusTransitionError):
            purchasing.receive_purchase(db, purchase)

    def test_cancelled_purchase_cannot_be_received(self, db, supplier, make_product):
        gula = make_product(stock=1, cost=1000)
        purchase = purchasing.create_purchase(db, supplier_id=supplier.id, items=[_line(gula, 1, 1000)])
        purchasing.cancel_purchase(db, purchase)
        with pytest.raises(InvalidStatusTransitionError):
            purchasing.receive_purchase(db, purchase)


class TestPurchaseApi:

    def _create(self, client, headers, supplier, product, **kw):
        body = {"supplier_id": supplier.id, "items": [{"product_id": product.id, "quantity": 10, "unit_cost": 1200}]}
        body.update(kw)
        return client.post("/purchases", json=body, headers=headers)

    def test_create_and_receive(self, client, db, admin_headers, supplier, make_product):
        product = make_product(stock=10, cost=1000)
        res = self._create(client, admin_headers, supplier, product)
        assert res.status_code == 201, res.text
        body = res.json()
        assert body["status"] == "PENDING"
        assert body["total_amount"] == 12000

        res = client.post(f"/purchases/{body['id']}/receive", headers=admin_headers)
        assert res.status_code == 200, res.text
        assert res.json()["status"] == "RECEIVED"

        db.expire_all()
        product = db.query(Product).filter(Product.id == product.id).one()
        assert (product.stock, product.purchase_price) == (20, 1100)

    def test_receive_twice_returns_domain_error(self, client, admin_headers, supplier, make_product):
        product = make_product(stock=1, cost=1000)
        pid = self._create(client, admin_headers, supplier, product).json()["id"]
        assert client.post(f"/purchases/{pid}/receive", headers=admin_headers).status_code == 200

        res = client.post(f"/purchases/{pid}/receive", headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_zero_cost_rejected_by_validation(self, client, admin_headers, supplier, make_product):
        product = make_product()
        res = client.post("/purchases", headers=admin_headers, json={
            "supplier_id": supplier.id, "items": [{"product_id": product.id, "quantity": 1, "unit_cost": 0}],
        })
        assert res.status_code == 422

    def test_cashier_cannot_manage_purchases(self, client, cashier_headers, supplier, make_product):
        product = make_product()
        assert self._create(client, cashier_headers, supplier, product).status_code == 403

    def test_payment_status_and_cancelled_guard(self, client, admin_headers, supplier, make_product):
        product = make_product()
        pid = self._create(client, admin_headers, supplier, product).json()["id"]

        res = client.patch(f"/purchases/{pid}/payment", json={"payment_status": "PAID"}, headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["payment_status"] == "PAID"

        other = self._create(client, admin_headers, supplier, product).json()["id"]
        assert client.post(f"/purchases/{other}/cancel", headers=admin_headers).status_code == 200
        res = client.patch(f"/purchases/{other}/payment", json={"payment_status": "PAID"}, headers=admin_headers)
        assert res.status_code == 400

    def test_goods_received_note_pdf(self, client, admin_headers, supplier, make_product):
        product = make_product()
        pid = self._create(client, admin_headers, supplier, product).json()["id"]

        assert client.get(f"/purchases/{pid}/grn", headers=admin_headers).status_code == 400

        client.post(f"/purchases/{pid}/receive", headers=admin_headers)
        res = client.get(f"/purchases/{pid}/grn", headers=admin_headers)
        assert res.status_code == 200
        assert res.headers["content-type"] == "application/pdf"
        assert res.content.startswith(b"%PDF")
