# SMSYNC Configuration Schema
# Pydantic models for YAML configuration validation

from enum import Enum

from apscheduler.triggers.cron import CronTrigger
from pydantic import BaseModel, Field, field_validator

from smsync.utils.paths import expand_path

ROUTINE_NAMES = ("offers", "inventory", "orders", "tracking")


class OrderFailurePolicy(str, Enum):
    """What the order routine does when creating one order fails."""

    ABORT = "abort"
    ISOLATE = "isolate"


class ShopifyConfig(BaseModel):
    """Shopify Admin API credentials."""

    store_name: str = Field(default="YOUR_STORE_NAME", description="Shop subdomain (<name>.myshopify.com)")
    access_token: str = Field(default="YOUR_SHOPIFY_ACCESS_TOKEN", description="Admin API access token")
    api_version: str = Field(default="2024-01", description="Admin API version")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @property
    def base_url(self) -> str:
        """Admin REST base URL."""
        return f"https://{self.store_name}.myshopify.com/admin/api/{self.api_version}"


class MiraklConfig(BaseModel):
    """Mirakl seller API credentials."""

    api_url: str = Field(default="https://YOUR_INSTANCE.mirakl.net", description="Mirakl instance URL")
    api_key: str = Field(default="YOUR_MIRAKL_API_KEY", description="Shop API key")
    shop_id: str | None = Field(default=None, description="Shop id for multi-shop API keys")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the instance URL."""
        return v.rstrip("/")


class SyncConfig(BaseModel):
    """Which routines run and when."""

    enabled: bool = Field(default=True, description="Enable scheduled syncs")
    run_on_start: bool = Field(default=True, description="Run an initial pass before scheduling")
    routines: list[str] = Field(default_factory=lambda: list(ROUTINE_NAMES), description="Enabled routines, in order")
    schedules: dict[str, str] = Field(
        default_factory=lambda: {
            "offers": "0 3 * * *",
            "inventory": "*/30 * * * *",
            "orders": "*/15 * * * *",
            "tracking": "0 * * * *",
        },
        description="Cron expression per routine",
    )
    order_failure_policy: OrderFailurePolicy = Field(
        default=OrderFailurePolicy.ABORT, description="abort: stop the batch; isolate: skip the failed order"
    )
    max_order_attempts: int = Field(
        default=3, ge=1, description="isolate: passes an order may fail before the cursor moves past it"
    )

    @field_validator("routines")
    @classmethod
    def known_routines(cls, v: list[str]) -> list[str]:
        """Reject unknown routine names."""
        unknown = [name for name in v if name not in ROUTINE_NAMES]
        if unknown:
            raise ValueError(f"Unknown routine(s): {', '.join(unknown)}")
        return v

    @field_validator("schedules")
    @classmethod
    def known_schedules(cls, v: dict[str, str]) -> dict[str, str]:
        """Reject schedules for unknown routines and malformed cron expressions."""
        for name, expression in v.items():
            if name not in ROUTINE_NAMES:
                raise ValueError(f"Schedule for unknown routine: {name}")
            if len(expression.split()) != 5:
                raise ValueError(f"Schedule for {name} must be a 5-field cron expression: {expression!r}")
            try:
                CronTrigger.from_crontab(expression)
            except ValueError as e:
                raise ValueError(f"Invalid cron expression for {name}: {expression!r} ({e})") from e
        return v


class OfferConfig(BaseModel):
    """Offer import row constants."""

    description_max_length: int = Field(default=200, gt=0, description="Description length cap")
    default_description: str = Field(default="Product description", description="Used when a product has no text")
    product_id_type: str = Field(default="SHOP_SKU", description="product-id-type column value")
    state_code: str = Field(default="11", description="Offer state code (11 = new)")
    leadtime_to_ship: int = Field(default=2, ge=0, description="Lead time to ship in days")
    sku_prefix: str = Field(default="SHOPIFY-", description="Prefix of synthesized skus")
    import_mode: str = Field(default="NORMAL", description="Mirakl offer import mode")
    product_page_size: int = Field(default=250, gt=0, le=250, description="Products fetched per pass")


class OrderConfig(BaseModel):
    """Order creation constants."""

    origin_tag: str = Field(default="Mirakl", description="Tag marking marketplace-origin orders")
    default_email: str = Field(default="noemail@mirakl.order", description="Email when the customer has none")
    default_line_title: str = Field(default="Product", description="Line title when the offer has none")
    financial_status: str = Field(default="paid", description="Payment status of created orders")


class TrackingConfig(BaseModel):
    """Tracking push settings."""

    page_size: int = Field(default=250, gt=0, le=250, description="Storefront orders considered per pass")
    default_carrier: str = Field(default="OTHER", description="Carrier code when a fulfillment has none")


class StateConfig(BaseModel):
    """Checkpoint file location."""

    path: str = Field(default="~/.config/smsync/sync_state.yaml", description="Checkpoint file path")

    @field_validator("path")
    @classmethod
    def expand_state_path(cls, v: str) -> str:
        """Expand ~ and environment variables in path."""
        return str(expand_path(v))


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_level: str = Field(default="INFO", description="Log level")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_path(cls, v: str | None) -> str | None:
        """Expand ~ and environment variables in optional paths."""
        if v is None:
            return None
        return str(expand_path(v))


class SmsyncConfig(BaseModel):
    """Root configuration model for SMSYNC."""

    shopify: ShopifyConfig = Field(default_factory=ShopifyConfig)
    mirakl: MiraklConfig = Field(default_factory=MiraklConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    offers: OfferConfig = Field(default_factory=OfferConfig)
    orders: OrderConfig = Field(default_factory=OrderConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def get_schedule(self, routine: str) -> str | None:
        """Get the cron expression for a routine."""
        return self.sync.schedules.get(routine)

    def get_enabled_routines(self) -> list[str]:
        """Return enabled routine names in execution order."""
        return list(self.sync.routines)
