# SMSYNC Sync Module
# Checkpoint state, transforms and the sync engine

from smsync.sync.correlation import CorrelationMarkers, decode_correlation, encode_correlation
from smsync.sync.engine import RoutineResult, SyncEngine, SyncReport
from smsync.sync.gateways import CatalogSource, MarketplaceSink, OrderSink
from smsync.sync.state import Checkpoint, CheckpointStore, SyncType

__all__ = [
    # State
    "Checkpoint",
    "CheckpointStore",
    "SyncType",
    # Correlation
    "CorrelationMarkers",
    "encode_correlation",
    "decode_correlation",
    # Gateways
    "CatalogSource",
    "OrderSink",
    "MarketplaceSink",
    # Engine
    "SyncEngine",
    "SyncReport",
    "RoutineResult",
]
