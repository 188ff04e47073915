"""Retention pruning of dated daily backup folders."""

import logging
from typing import List, Sequence

from .location import DAILY_NAMESPACE, BackupLocation


def select_expired(names: Sequence[str], retention: int) -> List[str]:
    """Return the oldest names beyond the retention count.
    
    Folder names are fixed-format dates, so lexicographic order is
    chronological order.
    
    Args:
        names: Dated folder names, in any order.
        retention: Number of most recent folders to keep.
        
    Returns:
        Names to delete, oldest first. Empty if within retention.
    """
    ordered = sorted(names)
    excess = len(ordered) - retention
    if excess <= 0:
        return []
    return ordered[:excess]


class RetentionPruner:
    """Deletes the oldest daily backup folders of a location."""
    
    def __init__(self, retention_days: int):
        """Initialize retention pruner.
        
        Args:
            retention_days: Maximum number of dated folders kept per location.
        """
        if retention_days < 1:
            raise ValueError(f"retention_days must be positive, got {retention_days}")
        self.retention_days = retention_days
        self.logger = logging.getLogger(__name__)
    
    def prune(self, location: BackupLocation) -> List[str]:
        """Prune a location's daily namespace down to the retention count.
        
        Args:
            location: Backup location to prune.
            
        Returns:
            Names of the removed date folders, oldest first.
            
        Raises:
            OSError: If the namespace cannot be listed or an entry cannot be removed.
        """
        expired = select_expired(location.list_entries(DAILY_NAMESPACE), self.retention_days)
        
        for name in expired:
            location.delete_tree(DAILY_NAMESPACE, name)
            self.logger.info(f"Removed expired backup {name} from {location.name}")
        
        return expired
