"""Backup and monthly snapshot producers."""

import logging
from datetime import date
from typing import Optional

from .context import WardenContext
from .location import DAILY_NAMESPACE, SNAPSHOT_NAMESPACE
from .mirror import MirrorCancelled
from .models import CycleResult, LocationResult
from .pruner import RetentionPruner
from ..utils.formatters import format_date, format_hour_label


class BackupProducer:
    """Runs one daily backup cycle across all backup locations."""
    
    def __init__(self, context: WardenContext, pruner: Optional[RetentionPruner] = None):
        """Initialize backup producer.
        
        Args:
            context: Application context.
            pruner: Retention pruner; defaults to one using the configured retention.
        """
        self.context = context
        self.pruner = pruner or RetentionPruner(context.config.retention_days)
        self.logger = logging.getLogger(__name__)
    
    def run(self) -> CycleResult:
        """Copy the watch folder into every location, then prune.
        
        The timestamp is taken once, so all locations in a cycle share the
        same date and hour label. A failure at one location is recorded in
        its result and does not stop the others.
        
        Returns:
            CycleResult with one LocationResult per location.
        """
        now = self.context.now()
        day = format_date(now)
        hour = format_hour_label(now)
        cycle = CycleResult(kind="backup", label=f"{day}/{hour}", started=now)
        
        self.logger.info(f"Starting backup {cycle.label} of {self.context.watch_folder}")
        
        for location in self.context.locations:
            result = LocationResult(location=location.name)
            cycle.results.append(result)
            
            try:
                result.destination, result.files_copied = location.write_tree(
                    self.context.watch_folder, DAILY_NAMESPACE, day, hour,
                    cancel=self.context.cancel_token()
                )
            except (OSError, MirrorCancelled) as e:
                result.error = f"Backup failed: {e}"
                self.logger.warning(f"Backup to {location.name} failed: {e}")
                continue
            
            self.logger.info(f"Backed up {result.files_copied} files to {result.destination}")
            
            try:
                result.pruned = self.pruner.prune(location)
            except OSError as e:
                result.error = f"Pruning failed: {e}"
                self.logger.warning(f"Pruning {location.name} failed: {e}")
        
        self.logger.info(
            f"Backup {cycle.label} finished: {len(cycle.succeeded)} succeeded, {len(cycle.failed)} failed"
        )
        return cycle


class SnapshotProducer:
    """Runs one monthly snapshot cycle across all backup locations."""
    
    def __init__(self, context: WardenContext):
        self.context = context
        self.logger = logging.getLogger(__name__)
    
    def run(self, day: date) -> CycleResult:
        """Copy the watch folder into ``Monthly Snapshots/<day>`` of every location.
        
        Snapshots are never pruned.
        
        Args:
            day: Date the snapshot is taken for.
            
        Returns:
            CycleResult with one LocationResult per location.
        """
        label = format_date(day)
        cycle = CycleResult(kind="snapshot", label=label, started=self.context.now())
        
        self.logger.info(f"Starting monthly snapshot {label} of {self.context.watch_folder}")
        
        for location in self.context.locations:
            result = LocationResult(location=location.name)
            cycle.results.append(result)
            
            try:
                result.destination, result.files_copied = location.write_tree(
                    self.context.watch_folder, SNAPSHOT_NAMESPACE, label,
                    cancel=self.context.cancel_token()
                )
                self.logger.info(f"Snapshot of {result.files_copied} files written to {result.destination}")
            except (OSError, MirrorCancelled) as e:
                result.error = f"Snapshot failed: {e}"
                self.logger.warning(f"Snapshot to {location.name} failed: {e}")
        
        return cycle
