"""Reports and low-stock alerts."""
import asyncio
from datetime import date, timedelta

import httpx

from utils.notifier import StockNotifier, low_stock_alerts


class TestReports:

    def test_low_stock_uses_derived_total(self, client, cashier_headers, make_product):
        make_product("Habis", stock=2, min_stock=5)
        make_product("Aman", stock=20, min_stock=5)
        res = client.get("/reports/low-stock", headers=cashier_headers)
        assert res.status_code == 200
        assert [i["name"] for i in res.json()["items"]] == ["Habis"]

    def test_valuation(self, client, admin_headers, make_product):
        make_product("A", price=15000, stock=10, cost=10000)
        make_product("B", price=3000, stock=4, cost=2500)
        body = client.get("/reports/valuation", headers=admin_headers).json()
        assert body["total_value"] == 10 * 10000 + 4 * 2500
        assert body["total_potential_profit"] == 10 * 5000 + 4 * 500

    def test_sales_summary_counts_completed_orders(self, client, admin_headers, cashier_headers, make_product):
        p = make_product(price=10000, stock=10)
        for qty in (1, 2):
            client.post("/orders/pos", headers=cashier_headers, json={
                "items": [{"product_id": p.id, "qty": qty}], "payment_method": "QRIS",
            })
        body = client.get("/reports/sales-summary", headers=admin_headers).json()
        assert body["total_orders"] == 2
        assert body["total_amount"] == 30000

    def test_expiring(self, client, cashier_headers, make_product):
        make_product("Susu", expiry_date=date.today() + timedelta(days=3))
        make_product("Beras", expiry_date=date.today() + timedelta(days=300))
        items = client.get("/reports/expiring", headers=cashier_headers, params={"days": 30}).json()
        assert [(i["name"], i["days_left"]) for i in items] == [("Susu", 3)]


class TestNotifier:

    def test_alerts_only_for_products_at_or_below_minimum(self, make_product):
        low = make_product("Low", stock=2, min_stock=2)
        ok = make_product("Ok", stock=3, min_stock=2)
        alerts = low_stock_alerts([low, ok])
        assert alerts == [{"product_id": low.id, "name": "Low", "stock": 2, "min_stock": 2}]

    def test_disabled_without_url(self):
        assert asyncio.run(StockNotifier(None).send_low_stock([{"product_id": 1}])) is False

    def test_webhook_failure_is_reported_not_raised(self, monkeypatch):
        def handler(request):
            return httpx.Response(500)

        real_client = httpx.AsyncClient
        monkeypatch.setattr(httpx, "AsyncClient",
                            lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw))
        sent = asyncio.run(StockNotifier("http://hooks.test/stock").send_low_stock([{"product_id": 1}]))
        assert sent is False

    def test_webhook_payload(self, monkeypatch):
        seen = {}

        def handler(request):
            seen["body"] = request.read()
            return httpx.Response(200)

        real_client = httpx.AsyncClient
        monkeypatch.setattr(httpx, "AsyncClient",
                            lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw))
        assert asyncio.run(StockNotifier("http://hooks.test/stock").send_low_stock([{"product_id": 7}])) is True
        assert b'"LOW_STOCK"' in seen["body"]
