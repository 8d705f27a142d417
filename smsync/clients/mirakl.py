# SMSYNC Mirakl Client
# Seller API implementation of MarketplaceSink

from datetime import datetime
from typing import Any, Optional

import httpx

from smsync.clients.base import ApiClient
from smsync.config.schema import MiraklConfig
from smsync.sync.models import ImportResult, MarketplaceOrder, TrackingUpdate

OFFERS_FILENAME = "offers.csv"
OFFERS_CONTENT_TYPE = "text/csv"


class MiraklClient(ApiClient):
    """Mirakl seller API."""

    platform = "mirakl"

    def __init__(self, config: MiraklConfig, *, transport: Optional[httpx.BaseTransport] = None):
        super().__init__(
            config.api_url,
            {"Authorization": config.api_key, "Accept": "application/json"},
            timeout=config.timeout,
            transport=transport,
        )
        self.shop_id = config.shop_id

    def _params(self, **params: Any) -> dict[str, Any]:
        if self.shop_id:
            params["shop_id"] = self.shop_id
        return params

    def import_offers(self, csv_content: str, *, import_mode: str = "NORMAL") -> ImportResult:
        """Upload an offer file (OF01)."""
        files = {"file": (OFFERS_FILENAME, csv_content.encode("utf-8"), OFFERS_CONTENT_TYPE)}
        response = self.request("POST", "/api/offers/imports", files=files, params=self._params(import_mode=import_mode))
        return ImportResult.from_api(response.json())

    def list_orders(self, since: Optional[datetime]) -> list[MarketplaceOrder]:
        """Orders created since the given time (OR11)."""
        params = self._params()
        if since is not None:
            params["start_date"] = since.isoformat()
        data = self.get_json("/api/orders", params=params)
        return [MarketplaceOrder.from_api(o) for o in data.get("orders") or []]

    def update_tracking(self, order_id: str, update: TrackingUpdate) -> None:
        """Set carrier and tracking number on an order (OR23)."""
        self.request("PUT", f"/api/orders/{order_id}/tracking", json=update.to_payload(), params=self._params())
