"""SMSYNC - Shopify-Mirakl Sync.

Poll-based synchronization of offers, inventory, orders and tracking
between a Shopify storefront and a Mirakl marketplace.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Checkpoint",
    "CheckpointStore",
    "SyncEngine",
    "SyncReport",
    "RoutineResult",
    "SyncType",
    "load_config",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("Checkpoint", "CheckpointStore", "SyncType"):
        from smsync.sync import state

        return getattr(state, name)
    if name in ("SyncEngine", "SyncReport", "RoutineResult"):
        from smsync.sync import engine

        return getattr(engine, name)
    if name == "load_config":
        from smsync.config.loader import load_config

        return load_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
