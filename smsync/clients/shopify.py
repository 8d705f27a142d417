# SMSYNC Shopify Client
# Admin REST implementation of CatalogSource and OrderSink

from datetime import datetime
from typing import Optional

import httpx

from smsync.clients.base import ApiClient
from smsync.config.schema import ShopifyConfig
from smsync.sync.models import (
    CatalogItem,
    CreatedOrder,
    Fulfillment,
    InventoryLevel,
    StorefrontOrder,
    StorefrontOrderDraft,
)


class ShopifyClient(ApiClient):
    """Shopify Admin REST API."""

    platform = "shopify"

    def __init__(self, config: ShopifyConfig, *, transport: Optional[httpx.BaseTransport] = None):
        super().__init__(
            config.base_url,
            {"X-Shopify-Access-Token": config.access_token, "Accept": "application/json"},
            timeout=config.timeout,
            transport=transport,
        )

    def list_products(self, limit: int = 250) -> list[CatalogItem]:
        data = self.get_json("/products.json", params={"limit": limit})
        return [CatalogItem.from_api(p) for p in data.get("products") or []]

    def list_inventory_levels(self, inventory_item_ids: list[str]) -> list[InventoryLevel]:
        data = self.get_json("/inventory_levels.json", params={"inventory_item_ids": ",".join(inventory_item_ids)})
        return [InventoryLevel.from_api(level) for level in data.get("inventory_levels") or []]

    def list_fulfillments(self, order_id: str) -> list[Fulfillment]:
        data = self.get_json(f"/orders/{order_id}/fulfillments.json")
        return [Fulfillment.from_api(f) for f in data.get("fulfillments") or []]

    def list_orders_since(self, cursor: Optional[datetime], limit: int = 250) -> list[StorefrontOrder]:
        """One page of orders updated since the cursor (all orders when None)."""
        params: dict[str, str | int] = {"status": "any", "limit": limit}
        if cursor is not None:
            params["updated_at_min"] = cursor.isoformat()
        data = self.get_json("/orders.json", params=params)
        return [StorefrontOrder.from_api(o) for o in data.get("orders") or []]

    def create_order(self, draft: StorefrontOrderDraft) -> CreatedOrder:
        response = self.request("POST", "/orders.json", json={"order": draft.to_payload()})
        return CreatedOrder.from_api(response.json()["order"])
