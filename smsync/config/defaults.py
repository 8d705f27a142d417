# SMSYNC Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "shopify": {
        "store_name": "YOUR_STORE_NAME",
        "access_token": "YOUR_SHOPIFY_ACCESS_TOKEN",
        "api_version": "2024-01",
        "timeout": 30.0,
    },
    "mirakl": {
        "api_url": "https://YOUR_INSTANCE.mirakl.net",
        "api_key": "YOUR_MIRAKL_API_KEY",
        "shop_id": None,
        "timeout": 30.0,
    },
    "sync": {
        "enabled": True,
        "run_on_start": True,
        "routines": ["offers", "inventory", "orders", "tracking"],
        "schedules": {
            "offers": "0 3 * * *",
            "inventory": "*/30 * * * *",
            "orders": "*/15 * * * *",
            "tracking": "0 * * * *",
        },
        "order_failure_policy": "abort",
        "max_order_attempts": 3,
    },
    "offers": {
        "description_max_length": 200,
        "default_description": "Product description",
        "product_id_type": "SHOP_SKU",
        "state_code": "11",
        "leadtime_to_ship": 2,
        "sku_prefix": "SHOPIFY-",
        "import_mode": "NORMAL",
        "product_page_size": 250,
    },
    "orders": {
        "origin_tag": "Mirakl",
        "default_email": "noemail@mirakl.order",
        "default_line_title": "Product",
        "financial_status": "paid",
    },
    "tracking": {
        "page_size": 250,
        "default_carrier": "OTHER",
    },
    "state": {
        "path": "~/.config/smsync/sync_state.yaml",
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_level": "INFO",
        "log_file": None,
    },
}


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# SMSYNC - Shopify-Mirakl Sync Configuration
#
# Credentials may also be supplied through environment variables:
#   SHOPIFY_STORE_NAME, SHOPIFY_ACCESS_TOKEN, SHOPIFY_API_VERSION,
#   MIRAKL_API_URL, MIRAKL_API_KEY, MIRAKL_SHOP_ID
#
# Routines:
#   - offers:    full offer import (Shopify products -> Mirakl offers)
#   - inventory: stock refresh using the same offer rows
#   - orders:    Mirakl orders -> Shopify orders
#   - tracking:  Shopify fulfillments -> Mirakl tracking
#
# order_failure_policy:
#   - abort:   the first failed order stops the batch
#   - isolate: failed orders are skipped and retried next pass, up to
#              max_order_attempts passes, after which the cursor moves on

"""
    data = {k: {kk: vv for kk, vv in v.items() if vv is not None} for k, v in DEFAULT_CONFIG.items()}
    return header + yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
