"""Recursive directory mirroring for backup and snapshot copies."""

import logging
import os
import shutil
import threading
import time
from typing import FrozenSet, Optional, Tuple


logger = logging.getLogger(__name__)


class MirrorCancelled(Exception):
    """Raised when a copy is stopped by its cancel token."""


class CancelToken:
    """Cancellation hook checked between copied entries.
    
    A copy is cancelled when the stop event is set or when the optional
    timeout (seconds, measured from token creation) has elapsed.
    """
    
    def __init__(self, stop_event: Optional[threading.Event] = None,
                 timeout: Optional[float] = None):
        self.stop_event = stop_event
        self.deadline = time.monotonic() + timeout if timeout else None
    
    def check(self) -> None:
        """Raise MirrorCancelled if the copy should stop."""
        if self.stop_event is not None and self.stop_event.is_set():
            raise MirrorCancelled("Copy stopped by shutdown request")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise MirrorCancelled("Copy exceeded its deadline")


def copy_tree(source: str, destination: str, cancel: Optional[CancelToken] = None) -> int:
    """Recursively copy the contents of source into destination.
    
    The destination root and any intermediate directories are created as
    needed. Existing files with the same name are overwritten; nothing is
    removed from the destination. Files are copied with ``shutil.copy2`` and
    symbolic links are followed.
    
    A directory link that leads back to a directory already being copied
    higher up the same branch (compared by device and inode) would recurse
    forever; it is skipped with a warning and nothing is written for it.
    
    Args:
        source: Directory to copy from.
        destination: Directory to copy into.
        cancel: Optional token checked before every entry.
        
    Returns:
        Number of files copied.
        
    Raises:
        FileNotFoundError: If source does not exist.
        NotADirectoryError: If source is not a directory.
        OSError: If a directory cannot be created or a file cannot be copied.
        MirrorCancelled: If the cancel token fires mid-copy.
    """
    if not os.path.exists(source):
        raise FileNotFoundError(f"Source does not exist: {source}")
    if not os.path.isdir(source):
        raise NotADirectoryError(f"Source is not a directory: {source}")
    
    copied = _copy_dir(source, destination, cancel, frozenset())
    logger.debug(f"Copied {copied} files from {source} to {destination}")
    return copied


def _dir_key(path: str) -> Tuple[int, int]:
    st = os.stat(path)
    return st.st_dev, st.st_ino


def _copy_dir(source: str, destination: str, cancel: Optional[CancelToken],
              ancestors: FrozenSet[Tuple[int, int]]) -> int:
    ancestors = ancestors | {_dir_key(source)}
    os.makedirs(destination, exist_ok=True)
    copied = 0
    
    with os.scandir(source) as entries:
        for entry in entries:
            if cancel is not None:
                cancel.check()
            
            target = os.path.join(destination, entry.name)
            if entry.is_dir():
                if _dir_key(entry.path) in ancestors:
                    logger.warning(f"Skipping {entry.path}: link back to a directory already being copied")
                    continue
                copied += _copy_dir(entry.path, target, cancel, ancestors)
            else:
                shutil.copy2(entry.path, target)
                copied += 1
    
    return copied
