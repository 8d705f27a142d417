# SMSYNC Checkpoint State
# Persisted sync cursors and the processed-order guard

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from smsync.errors import CheckpointError
from smsync.utils.paths import atomic_write, expand_path

logger = logging.getLogger(__name__)

# camelCase keys found in older sync-state.json files
_LEGACY_KEYS = {
    "lastProductSync": "last_product_sync",
    "lastInventorySync": "last_inventory_sync",
    "lastOrderSync": "last_order_sync",
    "lastTrackingSync": "last_tracking_sync",
    "processedOrders": "processed_order_ids",
    "processedOrderIds": "processed_order_ids",
}


class SyncType(str, Enum):
    """Sync routines that own a cursor."""

    PRODUCTS = "products"
    INVENTORY = "inventory"
    ORDERS = "orders"
    TRACKING = "tracking"

    @property
    def field_name(self) -> str:
        return _CURSOR_FIELDS[self]


_CURSOR_FIELDS = {
    SyncType.PRODUCTS: "last_product_sync",
    SyncType.INVENTORY: "last_inventory_sync",
    SyncType.ORDERS: "last_order_sync",
    SyncType.TRACKING: "last_tracking_sync",
}


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp, treating naive values as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Ignoring unparseable checkpoint timestamp: %r", value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Checkpoint:
    """
    Incremental sync state.

    processed_order_ids only grows; each marketplace order id appears at
    most once.
    """

    last_product_sync: Optional[datetime] = None
    last_inventory_sync: Optional[datetime] = None
    last_order_sync: Optional[datetime] = None
    last_tracking_sync: Optional[datetime] = None
    processed_order_ids: list[str] = field(default_factory=list)
    failed_order_attempts: dict[str, int] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    _index: set[str] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        unique: list[str] = []
        for order_id in self.processed_order_ids:
            if order_id not in self._index:
                self._index.add(order_id)
                unique.append(order_id)
        self.processed_order_ids = unique

    def is_processed(self, order_id: str) -> bool:
        """Check whether an order was already materialized."""
        return order_id in self._index

    def mark_processed(self, order_id: str) -> bool:
        """Record an order id. Returns False if it was already recorded."""
        if order_id in self._index:
            return False
        self._index.add(order_id)
        self.processed_order_ids.append(order_id)
        self.failed_order_attempts.pop(order_id, None)
        return True

    def record_failure(self, order_id: str) -> int:
        """Count a failed creation attempt. Returns the attempts so far."""
        attempts = self.failed_order_attempts.get(order_id, 0) + 1
        self.failed_order_attempts[order_id] = attempts
        return attempts

    def get_cursor(self, sync_type: SyncType) -> Optional[datetime]:
        return getattr(self, sync_type.field_name)

    def set_cursor(self, sync_type: SyncType, when: Optional[datetime]) -> None:
        setattr(self, sync_type.field_name, when)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = dict(self.extra)
        for sync_type in SyncType:
            data[sync_type.field_name] = _format_timestamp(self.get_cursor(sync_type))
        data["processed_order_ids"] = list(self.processed_order_ids)
        if self.failed_order_attempts:
            data["failed_order_attempts"] = dict(self.failed_order_attempts)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Checkpoint":
        """Create from dictionary. Unknown keys are kept in `extra`."""
        normalized: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        known = set(_CURSOR_FIELDS.values()) | {"processed_order_ids", "failed_order_attempts"}

        for key, value in data.items():
            key = _LEGACY_KEYS.get(key, key)
            if key in known:
                normalized[key] = value
            else:
                extra[key] = value

        attempts = normalized.get("failed_order_attempts")
        if not isinstance(attempts, dict):
            attempts = {}

        return cls(
            last_product_sync=_parse_timestamp(normalized.get("last_product_sync")),
            last_inventory_sync=_parse_timestamp(normalized.get("last_inventory_sync")),
            last_order_sync=_parse_timestamp(normalized.get("last_order_sync")),
            last_tracking_sync=_parse_timestamp(normalized.get("last_tracking_sync")),
            processed_order_ids=[str(order_id) for order_id in normalized.get("processed_order_ids") or []],
            failed_order_attempts={str(order_id): int(count) for order_id, count in attempts.items()},
            extra=extra,
        )


class CheckpointStore:
    """
    Loads and persists the Checkpoint.

    The store is owned by a single process; it does not guard against a
    second process writing the same file.
    """

    def __init__(self, path: Path):
        """
        Initialize checkpoint store.

        Args:
            path: Path to the checkpoint file.
        """
        self.path = expand_path(path)
        self._checkpoint: Optional[Checkpoint] = None

    @property
    def checkpoint(self) -> Checkpoint:
        """Get current checkpoint, loading if necessary."""
        if self._checkpoint is None:
            self._checkpoint = self.load()
        return self._checkpoint

    def load(self) -> Checkpoint:
        """
        Load the checkpoint from disk.

        A missing or unreadable file yields an empty Checkpoint.
        """
        if not self.path.exists():
            logger.info("No checkpoint at %s, starting from an empty state", self.path)
            self._checkpoint = Checkpoint()
            return self._checkpoint

        try:
            with open(self.path, encoding="utf-8") as f:
                # YAML is a superset of JSON, so legacy JSON files load here too
                data = yaml.safe_load(f)
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise CheckpointError("Checkpoint root is not a mapping", {"path": str(self.path)})
            self._checkpoint = Checkpoint.from_dict(data)
        except (OSError, yaml.YAMLError, CheckpointError, TypeError, ValueError) as e:
            logger.warning("Could not load checkpoint %s (%s), starting from an empty state", self.path, e)
            self._checkpoint = Checkpoint()

        return self._checkpoint

    def save(self) -> bool:
        """
        Write the checkpoint to disk.

        Returns:
            True if written. Failures are logged; the in-memory checkpoint
            stays authoritative for this process.
        """
        content = yaml.dump(self.checkpoint.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        try:
            atomic_write(self.path, content)
        except OSError as e:
            logger.error("Could not save checkpoint %s: %s", self.path, e)
            return False
        logger.debug("Checkpoint saved to %s", self.path)
        return True

    def is_processed(self, order_id: str) -> bool:
        return self.checkpoint.is_processed(order_id)

    def mark_processed(self, order_id: str) -> bool:
        return self.checkpoint.mark_processed(order_id)

    def record_failure(self, order_id: str) -> int:
        return self.checkpoint.record_failure(order_id)

    def get_cursor(self, sync_type: SyncType) -> Optional[datetime]:
        return self.checkpoint.get_cursor(sync_type)

    def advance(self, sync_type: SyncType, when: datetime) -> bool:
        """Set a routine's cursor and persist."""
        self.checkpoint.set_cursor(sync_type, when)
        return self.save()

    def reset_cursors(self) -> bool:
        """Clear every cursor. Processed order ids are kept."""
        for sync_type in SyncType:
            self.checkpoint.set_cursor(sync_type, None)
        return self.save()

    def export_json(self) -> str:
        """Checkpoint as pretty-printed JSON."""
        return json.dumps(self.checkpoint.to_dict(), indent=2)
