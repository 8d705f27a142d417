# SMSYNC Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from smsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from smsync.config.loader import (
    ensure_config_exists,
    find_credential_problems,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from smsync.config.schema import (
    ROUTINE_NAMES,
    MiraklConfig,
    OfferConfig,
    OrderConfig,
    OrderFailurePolicy,
    OutputConfig,
    ShopifyConfig,
    SmsyncConfig,
    StateConfig,
    SyncConfig,
    TrackingConfig,
)

__all__ = [
    # Schema
    "SmsyncConfig",
    "ShopifyConfig",
    "MiraklConfig",
    "SyncConfig",
    "OfferConfig",
    "OrderConfig",
    "TrackingConfig",
    "StateConfig",
    "OutputConfig",
    "OrderFailurePolicy",
    "ROUTINE_NAMES",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    "find_credential_problems",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
