# SMSYNC Test Fixtures
# Pytest fixtures and in-memory gateways for SMSYNC tests

import tempfile
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest
import yaml

from smsync.config.schema import SmsyncConfig
from smsync.errors import GatewayError
from smsync.sync.correlation import decode_correlation
from smsync.sync.models import (
    CatalogItem,
    CreatedOrder,
    Fulfillment,
    ImportResult,
    InventoryLevel,
    MarketplaceAddress,
    MarketplaceOrder,
    MarketplaceOrderLine,
    StorefrontOrder,
    StorefrontOrderDraft,
    TrackingUpdate,
    Variant,
)
from smsync.sync.state import CheckpointStore


class FakeShopify:
    """In-memory CatalogSource and OrderSink."""

    def __init__(
        self,
        products: Optional[list[CatalogItem]] = None,
        levels: Optional[list[InventoryLevel]] = None,
        orders: Optional[list[StorefrontOrder]] = None,
        fulfillments: Optional[dict[str, list[Fulfillment]]] = None,
    ):
        self.products = products or []
        self.levels = levels or []
        self.orders = orders or []
        self.fulfillments = fulfillments or {}
        self.created: list[StorefrontOrderDraft] = []
        self.fail_on: set[str] = set()
        self.calls: list[tuple] = []

    def list_products(self, limit: int = 250) -> list[CatalogItem]:
        self.calls.append(("list_products", limit))
        return list(self.products)

    def list_inventory_levels(self, inventory_item_ids: list[str]) -> list[InventoryLevel]:
        self.calls.append(("list_inventory_levels", list(inventory_item_ids)))
        return [level for level in self.levels if level.inventory_item_id in inventory_item_ids]

    def list_fulfillments(self, order_id: str) -> list[Fulfillment]:
        self.calls.append(("list_fulfillments", order_id))
        return list(self.fulfillments.get(order_id, []))

    def list_orders_since(self, cursor: Optional[datetime], limit: int = 250) -> list[StorefrontOrder]:
        self.calls.append(("list_orders_since", cursor, limit))
        return list(self.orders)

    def create_order(self, draft: StorefrontOrderDraft) -> CreatedOrder:
        if decode_correlation(draft.note, draft.tags) in self.fail_on:
            raise GatewayError(
                "shopify POST /orders.json returned HTTP 422",
                platform="shopify",
                status_code=422,
                body={"errors": {"line_items": ["invalid"]}},
            )
        self.created.append(draft)
        number = 1000 + len(self.created)
        return CreatedOrder(id=str(number * 10), order_number=str(number))


class FakeMirakl:
    """In-memory MarketplaceSink."""

    def __init__(self, orders: Optional[list[MarketplaceOrder]] = None):
        self.orders = orders or []
        self.imports: list[tuple[str, str]] = []
        self.tracking: list[tuple[str, TrackingUpdate]] = []
        self.since: list[Optional[datetime]] = []
        self.import_error: Optional[Exception] = None

    def import_offers(self, csv_content: str, *, import_mode: str = "NORMAL") -> ImportResult:
        if self.import_error is not None:
            raise self.import_error
        self.imports.append((csv_content, import_mode))
        return ImportResult(import_id=str(len(self.imports)))

    def list_orders(self, since: Optional[datetime]) -> list[MarketplaceOrder]:
        self.since.append(since)
        return list(self.orders)

    def update_tracking(self, order_id: str, update: TrackingUpdate) -> None:
        self.tracking.append((order_id, update))


def make_marketplace_order(order_id: str, **kwargs) -> MarketplaceOrder:
    """Marketplace order with one line and a shipping address."""
    return MarketplaceOrder(
        order_id=order_id,
        customer_email=kwargs.get("email", "buyer@example.com"),
        order_lines=kwargs.get(
            "lines",
            [MarketplaceOrderLine(price="19.90", quantity=1, offer_sku="A1", product_title="Blue mug")],
        ),
        shipping_address=kwargs.get(
            "shipping_address",
            MarketplaceAddress(firstname="Ada", lastname="Lovelace", street_1="1 Main St", city="Paris", country_iso_code="FRA", zip_code="75001"),
        ),
        billing_address=kwargs.get("billing_address"),
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def state_file(temp_dir: Path) -> Path:
    """Checkpoint file path (not created)."""
    return temp_dir / "state" / "sync_state.yaml"


@pytest.fixture
def store(state_file: Path) -> CheckpointStore:
    return CheckpointStore(state_file)


@pytest.fixture
def sample_config(state_file: Path) -> dict:
    """Create sample configuration dict."""
    return {
        "shopify": {
            "store_name": "acme-test",
            "access_token": "shpat_0123456789",
            "api_version": "2024-01",
        },
        "mirakl": {
            "api_url": "https://acme.mirakl.net/",
            "api_key": "mk-0123456789",
            "shop_id": "2001",
        },
        "sync": {
            "enabled": True,
            "routines": ["offers", "inventory", "orders", "tracking"],
            "schedules": {"orders": "*/5 * * * *"},
        },
        "state": {"path": str(state_file)},
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def config(sample_config: dict) -> SmsyncConfig:
    return SmsyncConfig.model_validate(sample_config)


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)
    return config_path


@pytest.fixture
def catalog() -> list[CatalogItem]:
    """Two products, three variants."""
    return [
        CatalogItem(
            id="1",
            title="Mug",
            body_html='<p>Nice "item"</p>',
            variants=[Variant(id="11", sku="A1", price="10.00", inventory_item_id="1")],
        ),
        CatalogItem(
            id="2",
            title="Plate",
            body_html=None,
            variants=[
                Variant(id="21", sku=None, barcode="4006381333931", price="5.50", inventory_item_id="2"),
                Variant(id="987", sku=None, barcode=None, price=None, inventory_item_id="3"),
            ],
        ),
    ]


@pytest.fixture
def levels() -> list[InventoryLevel]:
    return [
        InventoryLevel(inventory_item_id="1", available=3),
        InventoryLevel(inventory_item_id="2", available=-5),
    ]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def shopify() -> FakeShopify:
    return FakeShopify()


@pytest.fixture
def mirakl() -> FakeMirakl:
    return FakeMirakl()


@pytest.fixture
def make_order():
    """Factory for marketplace orders."""
    return make_marketplace_order
