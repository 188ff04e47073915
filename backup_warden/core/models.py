"""Data models for backup warden."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class WardenConfig:
    """Validated configuration, immutable for the life of the process."""
    watch_folder: str
    backup_locations: Tuple[str, ...]
    retention_days: int
    poll_interval: float = 3600.0
    wait_timeout: float = 60.0
    compare_contents: bool = True
    copy_timeout: Optional[float] = None


@dataclass
class LocationResult:
    """Outcome of one cycle at one backup location."""
    location: str
    destination: Optional[str] = None
    files_copied: int = 0
    pruned: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CycleResult:
    """Outcome of a backup or snapshot cycle across all locations."""
    kind: str
    label: str
    started: datetime
    results: List[LocationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[LocationResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[LocationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed
