"""Registration, login, roles and the audit trail."""
from models.log import Log
from models.users import User

from conftest import PASSWORD


class TestAuth:

    def test_register_creates_customer(self, client, db):
        res = client.post("/register", json={"email": "Siti@Example.com", "password": "rahasia1",
                                             "first_name": "Siti"})
        assert res.status_code == 201, res.text
        assert res.json()["role"] == "customer"
        assert res.json()["email"] == "siti@example.com"
        assert db.query(Log).filter(Log.action == "REGISTER", Log.status == "SUCCESS").count() == 1

    def test_duplicate_email(self, client, customer):
        res = client.post("/register", json={"email": customer.email, "password": "rahasia1"})
        assert res.status_code == 400

    def test_login_and_me(self, client, cashier):
        res = client.post("/login", json={"email": cashier.email, "password": PASSWORD})
        assert res.status_code == 200
        token = res.json()["access_token"]

        me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["role"] == "cashier"

    def test_bad_password_is_logged(self, client, db, cashier):
        res = client.post("/login", json={"email": cashier.email, "password": "salah"})
        assert res.status_code == 401
        assert db.query(Log).filter(Log.action == "LOGIN", Log.status == "FAIL").count() == 1

    def test_invalid_token(self, client):
        assert client.get("/me", headers={"Authorization": "Bearer nope"}).status_code == 401


class TestAdminUsers:

    def test_admin_creates_cashier(self, client, db, admin_headers):
        res = client.post("/users", headers=admin_headers, json={
            "email": "kasir2@toko.test", "password": "rahasia1", "role": "cashier",
        })
        assert res.status_code == 201, res.text
        assert db.query(User).filter(User.email == "kasir2@toko.test").one().role == "cashier"

    def test_unknown_role_rejected(self, client, admin_headers, customer):
        res = client.put(f"/users/{customer.id}/role", headers=admin_headers, json={"role": "salesman"})
        assert res.status_code == 422

    def test_cashier_cannot_list_users(self, client, cashier_headers):
        assert client.get("/users", headers=cashier_headers).status_code == 403

    def test_logs_visible_to_admin_only(self, client, admin_headers, cashier_headers, customer):
        client.post("/login", json={"email": customer.email, "password": PASSWORD})
        res = client.get("/logs", headers=admin_headers, params={"action": "LOGIN"})
        assert res.status_code == 200
        assert res.json()["total"] == 1
        assert client.get("/logs", headers=cashier_headers).status_code == 403
