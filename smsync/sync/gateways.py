# SMSYNC Gateway Contracts
# One protocol per remote platform capability

from datetime import datetime
from typing import Optional, Protocol

from smsync.sync.models import (
    CatalogItem,
    CreatedOrder,
    Fulfillment,
    ImportResult,
    InventoryLevel,
    MarketplaceOrder,
    StorefrontOrder,
    StorefrontOrderDraft,
    TrackingUpdate,
)


class CatalogSource(Protocol):
    """Read side of the storefront."""

    def list_products(self, limit: int = 250) -> list[CatalogItem]: ...

    def list_inventory_levels(self, inventory_item_ids: list[str]) -> list[InventoryLevel]: ...

    def list_fulfillments(self, order_id: str) -> list[Fulfillment]: ...

    def list_orders_since(self, cursor: Optional[datetime], limit: int = 250) -> list[StorefrontOrder]: ...


class OrderSink(Protocol):
    """Write side of the storefront."""

    def create_order(self, draft: StorefrontOrderDraft) -> CreatedOrder: ...


class MarketplaceSink(Protocol):
    """The marketplace, both directions."""

    def import_offers(self, csv_content: str, *, import_mode: str = "NORMAL") -> ImportResult: ...

    def list_orders(self, since: Optional[datetime]) -> list[MarketplaceOrder]: ...

    def update_tracking(self, order_id: str, update: TrackingUpdate) -> None: ...
