"""Polling change monitor for the watch folder, built on watchdog."""

import hashlib
import logging
import os
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers.polling import PollingObserver


class ChangeKind(Enum):
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"
    OTHER = "other"
    ERROR = "error"


ACTIONABLE_KINDS = (ChangeKind.CREATED, ChangeKind.MODIFIED, ChangeKind.REMOVED)

# Longest stretch a stop request can go unnoticed while waiting for events
STOP_CHECK_INTERVAL = 1.0


@dataclass
class ChangeEvent:
    """A discrete change notification from the monitor."""
    kind: ChangeKind
    path: str
    is_directory: bool = False
    error: Optional[Exception] = None

    @property
    def actionable(self) -> bool:
        return self.kind in ACTIONABLE_KINDS


def file_digest(path: str, chunk_size: int = 1024 * 1024) -> str:
    """SHA-256 of a file's contents."""
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            digest.update(chunk)
    return digest.hexdigest()


class ChangeEventHandler(FileSystemEventHandler):
    """Translates watchdog events into ChangeEvents on a queue.
    
    With ``compare_contents`` enabled the handler keeps a digest of every
    known file and drops modifications that leave the content unchanged,
    along with directory-modified events, which only reflect child churn.
    """
    
    def __init__(self, events: "queue.Queue[ChangeEvent]", compare_contents: bool = True):
        super().__init__()
        self.events = events
        self.compare_contents = compare_contents
        self._digests: Dict[str, str] = {}
        self.logger = logging.getLogger(__name__)
    
    def prime(self, root: str) -> None:
        """Record digests for every file currently under root."""
        if not self.compare_contents:
            return
        
        self._digests.clear()
        for dirpath, dirs, files in os.walk(root):
            for filename in files:
                path = os.path.join(dirpath, filename)
                try:
                    self._digests[path] = file_digest(path)
                except OSError as e:
                    self.logger.debug(f"Could not hash {path}: {e}")
        
        self.logger.debug(f"Primed {len(self._digests)} file digests under {root}")
    
    def _emit(self, kind: ChangeKind, path: str, is_directory: bool = False,
              error: Optional[Exception] = None) -> None:
        self.events.put(ChangeEvent(kind=kind, path=path, is_directory=is_directory, error=error))
    
    def _remember(self, path: str) -> None:
        if not self.compare_contents:
            return
        try:
            self._digests[path] = file_digest(path)
        except OSError as e:
            self.logger.debug(f"Could not hash {path}: {e}")
    
    def _forget(self, path: str) -> None:
        prefix = path + os.sep
        for known in [p for p in self._digests if p == path or p.startswith(prefix)]:
            del self._digests[known]
    
    def on_created(self, event):
        if not event.is_directory:
            self._remember(event.src_path)
        self._emit(ChangeKind.CREATED, event.src_path, event.is_directory)
    
    def on_deleted(self, event):
        self._forget(event.src_path)
        self._emit(ChangeKind.REMOVED, event.src_path, event.is_directory)
    
    def on_moved(self, event):
        self._forget(event.src_path)
        self._emit(ChangeKind.REMOVED, event.src_path, event.is_directory)
        if not event.is_directory:
            self._remember(event.dest_path)
        self._emit(ChangeKind.CREATED, event.dest_path, event.is_directory)
    
    def on_modified(self, event):
        if not self.compare_contents:
            self._emit(ChangeKind.MODIFIED, event.src_path, event.is_directory)
            return
        
        if event.is_directory:
            return
        
        try:
            digest = file_digest(event.src_path)
        except FileNotFoundError:
            # removed since the poll; the deletion is reported separately
            return
        except OSError as e:
            self._emit(ChangeKind.ERROR, event.src_path, error=e)
            return
        
        if self._digests.get(event.src_path) == digest:
            self.logger.debug(f"Ignoring metadata-only change to {event.src_path}")
            return
        
        self._digests[event.src_path] = digest
        self._emit(ChangeKind.MODIFIED, event.src_path)
    
    def on_closed(self, event):
        self._emit(ChangeKind.OTHER, event.src_path, event.is_directory)


class ChangeMonitor:
    """Watches a folder recursively by polling and queues change events."""
    
    def __init__(self, watch_folder: str, poll_interval: float = 3600.0,
                 compare_contents: bool = True,
                 observer_factory: Optional[Callable[..., PollingObserver]] = None):
        """Initialize change monitor.
        
        Args:
            watch_folder: Folder to watch, including its subtree.
            poll_interval: Seconds between polls of the folder.
            compare_contents: Drop modifications that do not change file contents.
            observer_factory: Callable building the observer, given ``timeout``.
        """
        self.watch_folder = watch_folder
        self.poll_interval = poll_interval
        self.events: "queue.Queue[ChangeEvent]" = queue.Queue()
        self.handler = ChangeEventHandler(self.events, compare_contents=compare_contents)
        self.observer_factory = observer_factory or PollingObserver
        self.observer = None
        self._watch_lost = False
        self.logger = logging.getLogger(__name__)
    
    def start(self) -> None:
        """Start polling the watch folder.
        
        Raises:
            FileNotFoundError: If the watch folder does not exist.
            NotADirectoryError: If the watch folder is not a directory.
        """
        if not os.path.exists(self.watch_folder):
            raise FileNotFoundError(f"Watch folder does not exist: {self.watch_folder}")
        if not os.path.isdir(self.watch_folder):
            raise NotADirectoryError(f"Watch folder is not a directory: {self.watch_folder}")
        
        self.handler.prime(self.watch_folder)
        
        self.observer = self.observer_factory(timeout=self.poll_interval)
        self.observer.schedule(self.handler, self.watch_folder, recursive=True)
        self.observer.start()
        self._watch_lost = False
        self.logger.info(f"Watching {self.watch_folder} (poll interval {self.poll_interval}s)")
    
    def stop(self) -> None:
        """Stop polling and wait for the observer thread to exit."""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
            self.logger.info(f"Stopped watching {self.watch_folder}")
    
    def check_watch(self) -> None:
        """Report a lost watch and re-arm it once the folder is back.
        
        The polling emitter exits for good when the watch folder disappears.
        The loss is queued once as an ERROR event; when the folder exists
        again the watch is rescheduled and a CREATED event for the folder is
        queued so the restored contents get backed up.
        """
        if self.observer is None:
            return
        
        folder_present = os.path.isdir(self.watch_folder)
        emitters = self.observer.emitters
        emitters_alive = bool(emitters) and all(emitter.is_alive() for emitter in emitters)
        if folder_present and emitters_alive and not self._watch_lost:
            return
        
        if not self._watch_lost:
            self._watch_lost = True
            error = FileNotFoundError(f"Watch folder is no longer available: {self.watch_folder}")
            self.events.put(ChangeEvent(ChangeKind.ERROR, self.watch_folder, is_directory=True, error=error))
        
        if not folder_present:
            return
        
        self.observer.unschedule_all()
        self.handler.prime(self.watch_folder)
        self.observer.schedule(self.handler, self.watch_folder, recursive=True)
        self._watch_lost = False
        self.logger.info(f"Resumed watching {self.watch_folder}")
        self.events.put(ChangeEvent(ChangeKind.CREATED, self.watch_folder, is_directory=True))
    
    def get_event(self, timeout: Optional[float] = None,
                  stop_event: Optional[threading.Event] = None) -> Optional[ChangeEvent]:
        """Wait up to timeout seconds for the next event; None on timeout.
        
        With a stop event the wait is split into short slices and ends early,
        returning None, once the event is set.
        """
        self.check_watch()
        
        if stop_event is None:
            try:
                return self.events.get(timeout=timeout)
            except queue.Empty:
                return None
        
        deadline = time.monotonic() + timeout if timeout is not None else None
        while not stop_event.is_set():
            wait = STOP_CHECK_INTERVAL
            if deadline is not None:
                wait = min(wait, deadline - time.monotonic())
                if wait <= 0:
                    return None
            try:
                return self.events.get(timeout=wait)
            except queue.Empty:
                continue
        return None
    
    def drain(self) -> List[ChangeEvent]:
        """Return every queued event without blocking."""
        drained = []
        while True:
            try:
                drained.append(self.events.get_nowait())
            except queue.Empty:
                return drained
