"""Backup location sinks."""

import logging
import os
import shutil
from typing import List, Optional, Tuple

from .mirror import CancelToken, copy_tree


DAILY_NAMESPACE = "Past 30 Days"
SNAPSHOT_NAMESPACE = "Monthly Snapshots"


class BackupLocation:
    """A destination that can receive copies of the watch folder.
    
    Producers and the pruner only talk to a location through these
    capabilities, so a non-local storage backend can be substituted by
    subclassing.
    """
    
    def __init__(self, root: str):
        self.root = root
        self.logger = logging.getLogger(__name__)
    
    @property
    def name(self) -> str:
        return self.root
    
    def has_namespace(self, namespace: str) -> bool:
        raise NotImplementedError
    
    def write_tree(self, source: str, namespace: str, *parts: str,
                   cancel: Optional[CancelToken] = None) -> Tuple[str, int]:
        raise NotImplementedError
    
    def list_entries(self, namespace: str) -> List[str]:
        raise NotImplementedError
    
    def delete_tree(self, namespace: str, name: str) -> None:
        raise NotImplementedError
    
    def usage(self, namespace: str) -> Tuple[int, int]:
        raise NotImplementedError
    
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.root!r})"


class LocalBackupLocation(BackupLocation):
    """Backup location rooted at a path on the local filesystem."""
    
    def path_for(self, namespace: str, *parts: str) -> str:
        return os.path.join(self.root, namespace, *parts)
    
    def has_namespace(self, namespace: str) -> bool:
        return os.path.isdir(self.path_for(namespace))
    
    def write_tree(self, source: str, namespace: str, *parts: str,
                   cancel: Optional[CancelToken] = None) -> Tuple[str, int]:
        """Mirror source into ``<root>/<namespace>/<parts...>``.
        
        Returns:
            Tuple of (destination path, number of files copied).
        """
        destination = self.path_for(namespace, *parts)
        copied = copy_tree(source, destination, cancel=cancel)
        return destination, copied
    
    def list_entries(self, namespace: str) -> List[str]:
        """List directory names in a namespace, sorted ascending.
        
        Non-directory entries are ignored.
        
        Raises:
            OSError: If the namespace cannot be listed.
        """
        with os.scandir(self.path_for(namespace)) as entries:
            names = [entry.name for entry in entries if entry.is_dir(follow_symlinks=False)]
        return sorted(names)
    
    def delete_tree(self, namespace: str, name: str) -> None:
        """Recursively delete one entry of a namespace."""
        shutil.rmtree(self.path_for(namespace, name))
    
    def usage(self, namespace: str) -> Tuple[int, int]:
        """Count entries and total file bytes in a namespace.
        
        Returns:
            Tuple of (entry count, total size in bytes). A missing namespace
            reports (0, 0).
        """
        if not self.has_namespace(namespace):
            return 0, 0
        
        total_size = 0
        for root, dirs, files in os.walk(self.path_for(namespace)):
            for filename in files:
                try:
                    total_size += os.path.getsize(os.path.join(root, filename))
                except OSError as e:
                    self.logger.debug(f"Skipping {filename} in size count: {e}")
        
        return len(self.list_entries(namespace)), total_size
