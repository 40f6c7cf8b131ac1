"""Sync engine for texsync - one-way repository to local folder sync."""

from .comparator import (
    PlannedDownload,
    ReconciliationEngine,
    SyncAction,
    SyncDecision,
    SyncPlan,
)
from .engine import SyncEngine, SyncResult
from .operations import SyncOperations
from .policy import (
    DISABLED_MARKER,
    EXCLUDED_SUBTREE,
    is_disabled_variant,
    is_excluded_subtree,
    to_disabled_path,
    to_enabled_path,
)
from .progress import SyncProgressInfo, SyncProgressTracker, SyncStage
from .remote import RemoteTreeFetcher
from .scanner import LocalTreeScanner
from .state import AppState, StateManager

__all__ = [
    "SyncEngine",
    "SyncResult",
    "SyncOperations",
    "ReconciliationEngine",
    "SyncAction",
    "SyncDecision",
    "SyncPlan",
    "PlannedDownload",
    "RemoteTreeFetcher",
    "LocalTreeScanner",
    "SyncProgressInfo",
    "SyncProgressTracker",
    "SyncStage",
    "AppState",
    "StateManager",
    "DISABLED_MARKER",
    "EXCLUDED_SUBTREE",
    "is_disabled_variant",
    "is_excluded_subtree",
    "to_disabled_path",
    "to_enabled_path",
]
