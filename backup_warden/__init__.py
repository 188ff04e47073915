"""
Backup Warden - A folder-watching local backup daemon.

This package watches a folder for changes, mirrors it into dated backup
directories across one or more backup locations, prunes backups beyond a
retention window, and takes a monthly snapshot on the last day of each month.
"""

__version__ = "1.0.0"

from .core.warden import BackupWarden
from .core.producer import BackupProducer, SnapshotProducer
from .core.change_monitor import ChangeMonitor
from .config.config_manager import ConfigManager

__all__ = ["BackupWarden", "BackupProducer", "SnapshotProducer", "ChangeMonitor", "ConfigManager"]
