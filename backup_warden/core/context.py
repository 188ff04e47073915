"""Application context shared by the warden's components."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from .location import BackupLocation, LocalBackupLocation
from .mirror import CancelToken
from .models import WardenConfig


@dataclass
class WardenContext:
    """Everything one watch/backup pipeline needs.
    
    Components receive the context explicitly instead of reading global
    state, so several pipelines can live in the same process.
    """
    config: WardenConfig
    locations: List[BackupLocation]
    clock: Callable[[], datetime] = datetime.now
    stop_event: threading.Event = field(default_factory=threading.Event)
    
    @classmethod
    def from_config(cls, config: WardenConfig,
                    clock: Optional[Callable[[], datetime]] = None) -> "WardenContext":
        """Build a context with local backup locations for every configured path."""
        locations = [LocalBackupLocation(path) for path in config.backup_locations]
        return cls(config=config, locations=locations, clock=clock or datetime.now)
    
    @property
    def watch_folder(self) -> str:
        return self.config.watch_folder
    
    def now(self) -> datetime:
        return self.clock()
    
    def cancel_token(self) -> CancelToken:
        """Token that stops a copy on shutdown or after the configured copy timeout."""
        return CancelToken(self.stop_event, self.config.copy_timeout)
