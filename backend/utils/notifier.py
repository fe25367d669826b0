# backend/utils/notifier.py
import httpx
import logging
from typing import Optional
from config import settings

logger = logging.getLogger(__name__)

class StockNotifier:
    """Posts low-stock alerts to an optional webhook (chat bot, push relay...)."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 5.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_low_stock(self, alerts: list) -> bool:
        # Each alert: {"product_id", "name", "stock", "min_stock"}
        if not self.enabled or not alerts:
            return False
        payload = {"event": "LOW_STOCK", "store": settings.STORE_NAME, "items": alerts}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
                return True
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                # Alerts are best effort, the stock change is already committed
                logger.error(f"Low stock webhook failed: {e}")
                return False

def low_stock_alerts(products) -> list:
    return [
        {"product_id": p.id, "name": p.name, "stock": p.stock, "min_stock": p.min_stock}
        for p in products
        if p.is_active and p.stock <= (p.min_stock or 0)
    ]

notifier = StockNotifier(settings.STOCK_WEBHOOK_URL, settings.STOCK_WEBHOOK_TIMEOUT)
