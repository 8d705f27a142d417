# SMSYNC Clients Module
# HTTP gateways for Shopify and Mirakl

from smsync.clients.base import ApiClient
from smsync.clients.mirakl import MiraklClient
from smsync.clients.shopify import ShopifyClient

__all__ = [
    "ApiClient",
    "ShopifyClient",
    "MiraklClient",
]
