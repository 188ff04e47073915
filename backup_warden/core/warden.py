"""Control loop tying the change monitor to the backup and snapshot producers."""

import logging
from enum import Enum
from typing import Optional

from .change_monitor import ChangeEvent, ChangeKind, ChangeMonitor
from .context import WardenContext
from .location import DAILY_NAMESPACE
from .models import CycleResult
from .producer import BackupProducer, SnapshotProducer
from .schedule import SnapshotSchedule


class WardenState(Enum):
    STARTING = "starting"
    IDLE = "idle"
    BACKING_UP = "backing up"
    SNAPSHOTTING = "snapshotting"


class BackupWarden:
    """Single-threaded control loop of the backup daemon.
    
    Waits for change events with a bounded timeout, runs a backup cycle for
    creations, modifications and removals, and after every wake-up checks
    whether the monthly snapshot is due. Cycles run synchronously, so events
    arriving during a copy queue up in the monitor until the next wait.
    """
    
    def __init__(self, context: WardenContext, monitor: ChangeMonitor,
                 backup_producer: Optional[BackupProducer] = None,
                 snapshot_producer: Optional[SnapshotProducer] = None,
                 schedule: Optional[SnapshotSchedule] = None):
        """Initialize the control loop.
        
        Args:
            context: Application context.
            monitor: Change monitor for the watch folder.
            backup_producer: Daily backup producer.
            snapshot_producer: Monthly snapshot producer.
            schedule: Snapshot schedule tracking the last snapshot date.
        """
        self.context = context
        self.monitor = monitor
        self.backup_producer = backup_producer or BackupProducer(context)
        self.snapshot_producer = snapshot_producer or SnapshotProducer(context)
        self.schedule = schedule or SnapshotSchedule()
        self.state = WardenState.STARTING
        self.logger = logging.getLogger(__name__)
    
    def backups_exist(self) -> bool:
        """True if any location already has a daily backup namespace."""
        return any(location.has_namespace(DAILY_NAMESPACE) for location in self.context.locations)
    
    def start(self) -> Optional[CycleResult]:
        """Make sure at least one backup exists, then go idle.
        
        Returns:
            The initial backup cycle, or None if backups already existed.
        """
        self.state = WardenState.STARTING
        result = None
        
        if not self.backups_exist():
            self.logger.info("No backup folders found, creating initial backup...")
            result = self._backup()
        
        self.state = WardenState.IDLE
        return result
    
    def step(self) -> None:
        """Handle one wake-up: an event or a timeout, then the snapshot check."""
        self.state = WardenState.IDLE
        event = self.monitor.get_event(
            timeout=self.context.config.wait_timeout, stop_event=self.context.stop_event
        )
        if self.context.stop_event.is_set():
            return
        
        if event is not None:
            self.handle_event(event)
        
        self.check_snapshot()
    
    def handle_event(self, event: ChangeEvent) -> Optional[CycleResult]:
        """Run a backup cycle if the event is a creation, modification or removal."""
        if event.kind == ChangeKind.ERROR:
            self.logger.warning(f"Watch error on {event.path}: {event.error}")
            return None
        
        if not event.actionable:
            self.logger.debug(f"Ignoring {event.kind.value} event for {event.path}")
            return None
        
        self.logger.info(f"Change detected ({event.kind.value}): {event.path}")
        
        # Events already queued are covered by the copy about to be made
        pending = self.monitor.drain()
        for queued in pending:
            if queued.kind == ChangeKind.ERROR:
                self.logger.warning(f"Watch error on {queued.path}: {queued.error}")
        if pending:
            self.logger.debug(f"Coalesced {len(pending)} queued events into this backup")
        
        return self._backup()
    
    def check_snapshot(self) -> Optional[CycleResult]:
        """Take the monthly snapshot if today is the last day of the month.
        
        Runs at most once per date; the date is marked done even if some
        locations failed.
        """
        today = self.context.now().date()
        if not self.schedule.is_due(today):
            return None
        
        self.state = WardenState.SNAPSHOTTING
        try:
            result = self.snapshot_producer.run(today)
        finally:
            self.state = WardenState.IDLE
        
        self.schedule.mark_done(today)
        for failure in result.failed:
            self.logger.warning(f"Monthly snapshot {result.label} missing at {failure.location}: {failure.error}")
        return result
    
    def run(self) -> None:
        """Start the monitor and loop until the context's stop event is set.
        
        Raises:
            FileNotFoundError: If the watch folder does not exist.
            NotADirectoryError: If the watch folder is not a directory.
        """
        self.monitor.start()
        try:
            self.start()
            while not self.context.stop_event.is_set():
                self.step()
        finally:
            self.monitor.stop()
    
    def stop(self) -> None:
        """Request the loop to exit and any in-progress copy to cancel."""
        self.context.stop_event.set()
    
    def _backup(self) -> CycleResult:
        self.state = WardenState.BACKING_UP
        try:
            return self.backup_producer.run()
        finally:
            self.state = WardenState.IDLE
