# SMSYNC Transforms
# Pure conversions between storefront and marketplace shapes

import re
from collections.abc import Iterable
from typing import Optional

from smsync.config.schema import OfferConfig, OrderConfig
from smsync.sync.correlation import encode_correlation
from smsync.sync.models import (
    CatalogItem,
    Fulfillment,
    InventoryLevel,
    MarketplaceAddress,
    MarketplaceOrder,
    OfferRow,
    StorefrontAddress,
    StorefrontLineItem,
    StorefrontOrder,
    StorefrontOrderDraft,
    TrackingUpdate,
    Variant,
)

OFFER_DELIMITER = ";"
OFFER_COLUMNS = (
    "sku",
    "product-id",
    "product-id-type",
    "price",
    "quantity",
    "state",
    "description",
    "leadtime-to-ship",
)
DEFAULT_PRICE = "0.00"

_TAG_RE = re.compile(r"<[^>]*>")


# ---------------------------------------------------------------------------
# Offers / inventory
# ---------------------------------------------------------------------------


def clamp_quantity(available: Optional[int]) -> int:
    """Negative or missing stock becomes zero."""
    return max(0, available or 0)


def build_inventory_map(levels: Iterable[InventoryLevel]) -> dict[str, int]:
    """
    Map inventory item id to clamped available quantity.

    Each level is clamped first; levels of the same item at several
    locations are then summed.
    """
    totals: dict[str, int] = {}
    for level in levels:
        totals[level.inventory_item_id] = totals.get(level.inventory_item_id, 0) + clamp_quantity(level.available)
    return totals


def collect_inventory_item_ids(items: Iterable[CatalogItem]) -> list[str]:
    """Inventory item references of every variant, in catalog order."""
    return [variant.inventory_item_id for item in items for variant in item.variants if variant.inventory_item_id]


def resolve_sku(variant: Variant, prefix: str = "SHOPIFY-") -> str:
    """Explicit sku, then barcode, then a synthesized id."""
    return variant.sku or variant.barcode or f"{prefix}{variant.id}"


def clean_description(html: Optional[str], max_length: int, default: str = "Product description") -> str:
    """
    Strip tags, double embedded quotes and cap the length.

    The cap applies to the escaped text. A doubled quote cut in half by the
    cap is dropped entirely. Text that is empty once tags and surrounding
    whitespace are removed yields the default.
    """
    if not html:
        return default
    text = _TAG_RE.sub("", html).strip()
    if not text:
        return default
    escaped = text.replace('"', '""')[:max_length]
    # Quotes come in pairs after escaping; an odd trailing run was split
    trailing = len(escaped) - len(escaped.rstrip('"'))
    if trailing % 2:
        escaped = escaped[:-1]
    return escaped


def build_offer_rows(
    items: Iterable[CatalogItem],
    inventory: dict[str, int],
    config: OfferConfig,
) -> list[OfferRow]:
    """One offer row per variant, in catalog order."""
    rows: list[OfferRow] = []
    for item in items:
        description = clean_description(
            item.body_html or item.title,
            config.description_max_length,
            config.default_description,
        )
        for variant in item.variants:
            sku = resolve_sku(variant, config.sku_prefix)
            rows.append(
                OfferRow(
                    sku=sku,
                    product_id=sku,
                    product_id_type=config.product_id_type,
                    price=variant.price or DEFAULT_PRICE,
                    quantity=clamp_quantity(inventory.get(variant.inventory_item_id or "")),
                    state=config.state_code,
                    description=description,
                    leadtime_to_ship=config.leadtime_to_ship,
                )
            )
    return rows


def encode_offer_row(row: OfferRow) -> str:
    """Render one row. Only the description is quoted."""
    return OFFER_DELIMITER.join(
        [
            row.sku,
            row.product_id,
            row.product_id_type,
            row.price,
            str(row.quantity),
            row.state,
            f'"{row.description}"',
            str(row.leadtime_to_ship),
        ]
    )


def encode_offers_csv(rows: Iterable[OfferRow]) -> str:
    """Header plus one line per row, newline separated."""
    lines = [OFFER_DELIMITER.join(OFFER_COLUMNS)]
    lines.extend(encode_offer_row(row) for row in rows)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


def convert_address(address: Optional[MarketplaceAddress]) -> Optional[StorefrontAddress]:
    """Field rename only."""
    if address is None:
        return None
    return StorefrontAddress(
        first_name=address.firstname,
        last_name=address.lastname,
        address1=address.street_1,
        address2=address.street_2,
        city=address.city,
        province=address.state,
        country=address.country_iso_code,
        zip=address.zip_code,
        phone=address.phone,
    )


def build_order_draft(order: MarketplaceOrder, config: OrderConfig) -> StorefrontOrderDraft:
    """Convert a marketplace order into a storefront creation payload."""
    markers = encode_correlation(order.order_id, config.origin_tag)
    return StorefrontOrderDraft(
        email=order.customer_email or config.default_email,
        line_items=[
            StorefrontLineItem(
                title=line.product_title or config.default_line_title,
                price=line.price,
                quantity=line.quantity,
                sku=line.offer_sku,
            )
            for line in order.order_lines
        ],
        shipping_address=convert_address(order.shipping_address),
        billing_address=convert_address(order.billing_address),
        financial_status=config.financial_status,
        tags=markers.tags,
        note=markers.note,
    )


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------


def is_marketplace_order(order: StorefrontOrder, origin_tag: str) -> bool:
    return origin_tag in order.tag_list


def is_fully_fulfilled(order: StorefrontOrder) -> bool:
    return order.fulfillment_status == "fulfilled"


def build_tracking_updates(fulfillments: Iterable[Fulfillment], default_carrier: str = "OTHER") -> list[TrackingUpdate]:
    """One update per fulfillment that carries a tracking number."""
    updates = []
    for fulfillment in fulfillments:
        if not fulfillment.tracking_number:
            continue
        updates.append(
            TrackingUpdate(
                carrier_code=fulfillment.tracking_company or default_carrier,
                carrier_name=fulfillment.tracking_company,
                tracking_number=fulfillment.tracking_number,
                tracking_url=fulfillment.tracking_url,
            )
        )
    return updates
