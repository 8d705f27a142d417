# SMSYNC Configuration Loader
# Load, save, and validate YAML configuration files

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from smsync.config.defaults import generate_default_config, get_default_config
from smsync.config.schema import ROUTINE_NAMES, SmsyncConfig

PLACEHOLDER_MARKER = "YOUR"

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SHOPIFY_STORE_NAME": ("shopify", "store_name"),
    "SHOPIFY_ACCESS_TOKEN": ("shopify", "access_token"),
    "SHOPIFY_API_VERSION": ("shopify", "api_version"),
    "MIRAKL_API_URL": ("mirakl", "api_url"),
    "MIRAKL_API_KEY": ("mirakl", "api_key"),
    "MIRAKL_SHOP_ID": ("mirakl", "shop_id"),
    "SMSYNC_STATE_PATH": ("state", "path"),
    "LOG_LEVEL": ("output", "log_level"),
}


def get_config_dir() -> Path:
    """Get the SMSYNC configuration directory."""
    return Path.home() / ".config" / "smsync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    env_path = os.environ.get("SMSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_config(config_path: Optional[Path] = None, *, environ: Optional[dict[str, str]] = None) -> SmsyncConfig:
    """
    Load configuration from YAML file and environment.

    Args:
        config_path: Optional path to config file. Uses default if not provided.
        environ: Environment mapping for overrides. Defaults to os.environ.

    Returns:
        SmsyncConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist.
        ValidationError: If the merged configuration is invalid.
    """
    data: dict[str, Any] = {}

    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}\nRun 'smsync config init' to create one.")

    path = config_path or get_config_path()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    merged = _merge_with_defaults(data)
    _apply_env_overrides(merged, os.environ if environ is None else environ)

    return SmsyncConfig.model_validate(merged)


def save_config(config: SmsyncConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude_none=True, mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    config_path = config_path or get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without applying environment overrides.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]

    if not isinstance(data, dict):
        return False, ["Configuration root must be a mapping"]

    errors: list[str] = []
    try:
        SmsyncConfig.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        for error in e.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

    return len(errors) == 0, errors


def find_credential_problems(config: SmsyncConfig) -> list[str]:
    """
    List missing or placeholder credentials.

    Returns:
        Human-readable problems; empty when the credentials look usable.
    """
    checks = {
        "shopify.store_name": config.shopify.store_name,
        "shopify.access_token": config.shopify.access_token,
        "mirakl.api_url": config.mirakl.api_url,
        "mirakl.api_key": config.mirakl.api_key,
    }
    problems = []
    for name, value in checks.items():
        if not value or not value.strip():
            problems.append(f"{name} is not set")
        elif PLACEHOLDER_MARKER in value:
            problems.append(f"{name} still holds a placeholder value")
    return problems


def _merge_with_defaults(data: dict) -> dict:
    """Merge loaded data with default values for missing keys."""
    result = get_default_config()

    for section, values in data.items():
        if isinstance(values, dict) and isinstance(result.get(section), dict):
            if section == "sync" and "schedules" in values:
                values = {**values, "schedules": {**result["sync"]["schedules"], **(values["schedules"] or {})}}
            result[section] = {**result[section], **values}
        else:
            result[section] = values

    return result


def _apply_env_overrides(data: dict, environ) -> None:
    """Apply environment variable overrides in place."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    enabled = environ.get("SYNC_ENABLED")
    if enabled is not None:
        data["sync"]["enabled"] = enabled.strip().lower() != "false"

    for routine in ROUTINE_NAMES:
        schedule = environ.get(f"SCHEDULE_{routine.upper()}")
        if schedule:
            data["sync"]["schedules"][routine] = schedule
