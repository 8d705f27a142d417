# SMSYNC Sync Models
# Typed records for every gateway request and response

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


def _str_or_none(value: Any) -> Optional[str]:
    """Stringify a scalar, keeping None and empty strings as None."""
    if value is None or value == "":
        return None
    return str(value)


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


# ---------------------------------------------------------------------------
# Storefront (Shopify) side
# ---------------------------------------------------------------------------


@dataclass
class Variant:
    """A sellable variant of a catalog product."""

    id: str
    price: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    inventory_item_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Variant:
        return cls(
            id=str(data["id"]),
            price=_str_or_none(data.get("price")),
            sku=_str_or_none(data.get("sku")),
            barcode=_str_or_none(data.get("barcode")),
            inventory_item_id=_str_or_none(data.get("inventory_item_id")),
        )


@dataclass
class CatalogItem:
    """A storefront product with its variants."""

    id: str
    title: Optional[str] = None
    body_html: Optional[str] = None
    variants: list[Variant] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CatalogItem:
        return cls(
            id=str(data["id"]),
            title=data.get("title"),
            body_html=data.get("body_html"),
            variants=[Variant.from_api(v) for v in data.get("variants") or []],
        )


@dataclass
class InventoryLevel:
    """Available quantity of one inventory item at one location."""

    inventory_item_id: str
    available: Optional[int] = None
    location_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> InventoryLevel:
        return cls(
            inventory_item_id=str(data["inventory_item_id"]),
            available=_int_or_none(data.get("available")),
            location_id=_str_or_none(data.get("location_id")),
        )


@dataclass
class StorefrontOrder:
    """The subset of a storefront order the tracking routine reads."""

    id: str
    name: Optional[str] = None
    tags: str = ""
    note: Optional[str] = None
    fulfillment_status: Optional[str] = None

    @property
    def tag_list(self) -> list[str]:
        """Tags split on commas, whitespace trimmed."""
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> StorefrontOrder:
        return cls(
            id=str(data["id"]),
            name=data.get("name"),
            tags=data.get("tags") or "",
            note=data.get("note"),
            fulfillment_status=data.get("fulfillment_status"),
        )


@dataclass
class Fulfillment:
    """A shipment recorded against a storefront order."""

    id: str
    tracking_company: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Fulfillment:
        tracking_number = data.get("tracking_number")
        if not tracking_number and data.get("tracking_numbers"):
            tracking_number = data["tracking_numbers"][0]
        tracking_url = data.get("tracking_url")
        if not tracking_url and data.get("tracking_urls"):
            tracking_url = data["tracking_urls"][0]
        return cls(
            id=str(data["id"]),
            tracking_company=_str_or_none(data.get("tracking_company")),
            tracking_number=_str_or_none(tracking_number),
            tracking_url=_str_or_none(tracking_url),
        )


@dataclass
class StorefrontAddress:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    zip: Optional[str] = None
    phone: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "province": self.province,
            "country": self.country,
            "zip": self.zip,
            "phone": self.phone,
        }


@dataclass
class StorefrontLineItem:
    title: str
    price: Optional[str] = None
    quantity: int = 1
    sku: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {"title": self.title, "price": self.price, "quantity": self.quantity, "sku": self.sku}


@dataclass
class StorefrontOrderDraft:
    """Outbound order creation payload."""

    email: str
    line_items: list[StorefrontLineItem]
    shipping_address: Optional[StorefrontAddress]
    billing_address: Optional[StorefrontAddress]
    financial_status: str
    tags: str
    note: str

    def to_payload(self) -> dict[str, Any]:
        """Shopify `order` object."""
        return {
            "email": self.email,
            "line_items": [item.to_payload() for item in self.line_items],
            "shipping_address": self.shipping_address.to_payload() if self.shipping_address else None,
            "billing_address": self.billing_address.to_payload() if self.billing_address else None,
            "financial_status": self.financial_status,
            "tags": self.tags,
            "note": self.note,
        }


@dataclass
class CreatedOrder:
    id: str
    order_number: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CreatedOrder:
        return cls(id=str(data["id"]), order_number=_str_or_none(data.get("order_number")))


# ---------------------------------------------------------------------------
# Marketplace (Mirakl) side
# ---------------------------------------------------------------------------


@dataclass
class MarketplaceAddress:
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    street_1: Optional[str] = None
    street_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country_iso_code: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_api(cls, data: Optional[dict[str, Any]]) -> Optional[MarketplaceAddress]:
        if not data:
            return None
        return cls(
            firstname=data.get("firstname"),
            lastname=data.get("lastname"),
            street_1=data.get("street_1"),
            street_2=data.get("street_2"),
            city=data.get("city"),
            state=data.get("state"),
            country_iso_code=data.get("country_iso_code"),
            zip_code=_str_or_none(data.get("zip_code")),
            phone=_str_or_none(data.get("phone")),
        )


@dataclass
class MarketplaceOrderLine:
    price: Optional[str] = None
    quantity: int = 1
    offer_sku: Optional[str] = None
    product_title: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> MarketplaceOrderLine:
        # Lines carry either a nested offer block or flat offer_* fields
        offer = data.get("offer") or {}
        quantity = _int_or_none(data.get("quantity"))
        return cls(
            price=_str_or_none(data.get("price")),
            quantity=1 if quantity is None else quantity,
            offer_sku=_str_or_none(offer.get("sku") or data.get("offer_sku")),
            product_title=offer.get("product_title") or data.get("product_title"),
        )


@dataclass
class MarketplaceOrder:
    """An order received on the marketplace."""

    order_id: str
    order_lines: list[MarketplaceOrderLine] = field(default_factory=list)
    customer_email: Optional[str] = None
    shipping_address: Optional[MarketplaceAddress] = None
    billing_address: Optional[MarketplaceAddress] = None
    state: Optional[str] = None
    created_date: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> MarketplaceOrder:
        customer = data.get("customer") or {}
        return cls(
            order_id=str(data["order_id"]),
            order_lines=[MarketplaceOrderLine.from_api(line) for line in data.get("order_lines") or []],
            customer_email=customer.get("email") or data.get("customer_notification_email"),
            shipping_address=MarketplaceAddress.from_api(
                data.get("shipping_address") or customer.get("shipping_address")
            ),
            billing_address=MarketplaceAddress.from_api(data.get("billing_address") or customer.get("billing_address")),
            state=data.get("order_state"),
            created_date=data.get("created_date"),
        )


@dataclass
class OfferRow:
    """One line of the marketplace offer import file."""

    sku: str
    product_id: str
    product_id_type: str
    price: str
    quantity: int
    state: str
    description: str
    leadtime_to_ship: int


@dataclass
class ImportResult:
    import_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ImportResult:
        return cls(import_id=_str_or_none(data.get("import_id")))


@dataclass
class TrackingUpdate:
    """Carrier and tracking details pushed to a marketplace order."""

    carrier_code: str
    tracking_number: str
    tracking_url: Optional[str] = None
    carrier_name: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"carrier_code": self.carrier_code, "tracking_number": self.tracking_number}
        if self.carrier_name:
            payload["carrier_name"] = self.carrier_name
        if self.tracking_url:
            payload["carrier_url"] = self.tracking_url
        return payload
