"""Suppliers and customers."""
from models.purchase import Purchase
from models.supplier import Supplier


class TestSuppliers:

    def test_crud_and_search(self, client, admin_headers):
        res = client.post("/suppliers", headers=admin_headers, json={"name": "UD Makmur", "phone": "0812"})
        assert res.status_code == 201
        sid = res.json()["id"]
        client.post("/suppliers", headers=admin_headers, json={"name": "CV Sentosa"})

        assert client.get("/suppliers", headers=admin_headers, params={"q": "makmur"}).json()["total"] == 1

        res = client.patch(f"/suppliers/{sid}", headers=admin_headers, json={"is_active": False})
        assert res.json()["is_active"] is False
        listed = client.get("/suppliers", headers=admin_headers, params={"active": True}).json()
        assert [s["name"] for s in listed["items"]] == ["CV Sentosa"]

    def test_supplier_with_purchases_cannot_be_deleted(self, client, db, admin_headers, make_product):
        supplier = Supplier(name="UD Makmur")
        db.add(supplier)
        db.commit()
        product = make_product()
        client.post("/purchases", headers=admin_headers, json={
            "supplier_id": supplier.id, "items": [{"product_id": product.id, "quantity": 1, "unit_cost": 500}],
        })
        assert db.query(Purchase).count() == 1
        assert client.delete(f"/suppliers/{supplier.id}", headers=admin_headers).status_code == 409

    def test_cashier_has_no_access(self, client, cashier_headers):
        assert client.get("/suppliers", headers=cashier_headers).status_code == 403


class TestCustomers:

    def test_cashier_registers_customer_at_till(self, client, cashier_headers):
        res = client.post("/customers", headers=cashier_headers,
                          json={"name": "Bu Ani", "phone": "08123", "address": "Jl. Melati 4"})
        assert res.status_code == 201
        cid = res.json()["id"]

        res = client.patch(f"/customers/{cid}", headers=cashier_headers, json={"phone": "08999"})
        assert res.json()["phone"] == "08999"
        assert client.get("/customers", headers=cashier_headers, params={"q": "ani"}).json()["total"] == 1

    def test_customer_with_orders_is_kept(self, client, admin_headers, cashier_headers, make_product):
        cid = client.post("/customers", headers=cashier_headers, json={"name": "Pak Budi"}).json()["id"]
        product = make_product(stock=5)
        res = client.post("/orders/pos", headers=cashier_headers, json={
            "items": [{"product_id": product.id, "qty": 1}], "payment_method": "QRIS", "customer_id": cid,
        })
        assert res.status_code == 201, res.text

        assert client.delete(f"/customers/{cid}", headers=cashier_headers).status_code == 403
        assert client.delete(f"/customers/{cid}", headers=admin_headers).status_code == 409

    def test_unused_customer_can_be_deleted(self, client, admin_headers, cashier_headers):
        cid = client.post("/customers", headers=cashier_headers, json={"name": "Pak Budi"}).json()["id"]
        assert client.delete(f"/customers/{cid}", headers=admin_headers).status_code == 200
        assert client.get(f"/customers/{cid}", headers=cashier_headers).status_code == 404
