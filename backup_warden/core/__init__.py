"""Core backup functionality."""

from .change_monitor import ChangeEvent, ChangeKind, ChangeMonitor
from .context import WardenContext
from .location import BackupLocation, LocalBackupLocation
from .mirror import CancelToken, MirrorCancelled, copy_tree
from .models import CycleResult, LocationResult, WardenConfig
from .producer import BackupProducer, SnapshotProducer
from .pruner import RetentionPruner
from .schedule import SnapshotSchedule, is_last_day_of_month
from .warden import BackupWarden, WardenState

__all__ = [
    "BackupLocation", "BackupProducer", "BackupWarden", "CancelToken", "ChangeEvent",
    "ChangeKind", "ChangeMonitor", "CycleResult", "LocalBackupLocation", "LocationResult",
    "MirrorCancelled", "RetentionPruner", "SnapshotProducer", "SnapshotSchedule",
    "WardenConfig", "WardenContext", "WardenState", "copy_tree", "is_last_day_of_month",
]
