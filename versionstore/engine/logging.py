"""
versionstore Event Log — Structured JSON file-based logging with async queue.

Implements:
- FileLogger: Per-object-type, per-category JSONL files (daily rotation)
- AsyncLogQueue: In-memory queue with background flush
- Entry builders for store events (saves, reads, errors, system events)

Files: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl

Operational messages still go through the stdlib ``logging`` loggers named
``versionstore.*``; this module is the machine-readable audit trail.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("versionstore.engine.logging")

# Object types and the categories each one writes to
OBJECT_TYPE_CATEGORIES = {
    "documents": ["execution", "performance", "errors"],
    "catalog": ["execution", "errors"],
    "system": ["execution"],
}


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Appends JSON log entries to daily files.

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = ".versionstore/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write entries, opening each target file once."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.object_type, entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def _resolve_path(self, object_type: str, category: str) -> Path:
        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, ()):
            object_type, category = "system", "execution"
        return self._log_dir / object_type / category / f"{date.today().isoformat()}.jsonl"

    def read(self, object_type: str, category: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Return all entries logged for one day (today by default), oldest first."""
        day = day or date.today()
        path = self._log_dir / object_type / category / f"{day.isoformat()}.jsonl"
        if not path.exists():
            return []

        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


class AsyncLogQueue:
    """
    Non-blocking front for FileLogger.

    A daemon thread drains the queue every flush_interval_ms, or as soon as
    flush_batch_size entries are waiting. Entries pushed while the queue is
    full are counted and dropped.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._logger = file_logger
        self._flush_interval = flush_interval_ms / 1000.0
        self._flush_batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._stop_event = threading.Event()
        self._flush_thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    @property
    def file_logger(self) -> FileLogger:
        return self._logger

    def start(self) -> None:
        if self._flush_thread and self._flush_thread.is_alive():
            return
        self._stop_event.clear()
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name="versionstore-log-flush",
            daemon=True,
        )
        self._flush_thread.start()
        logger.debug("Event log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flush thread and write whatever is still queued."""
        self._stop_event.set()
        if self._flush_thread and self._flush_thread.is_alive():
            self._flush_thread.join(timeout=timeout)
        self._flush(self._take(self._queue.qsize()))
        logger.debug("Event log queue stopped (dropped: %d)", self._dropped_count)

    def push(self, entry: LogEntry) -> bool:
        """Queue an entry. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(entry)
            return True
        except Full:
            self._dropped_count += 1
            return False

    def _flush_loop(self) -> None:
        while not self._stop_event.is_set():
            batch = self._collect_batch()
            if batch:
                self._flush(batch)

    def _collect_batch(self) -> List[LogEntry]:
        """Wait up to one flush interval for a batch of entries."""
        batch: List[LogEntry] = []
        deadline = time.monotonic() + self._flush_interval
        while len(batch) < self._flush_batch_size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                batch.append(self._queue.get(timeout=remaining))
            except Empty:
                break
        return batch

    def _take(self, count: int) -> List[LogEntry]:
        batch: List[LogEntry] = []
        for _ in range(count):
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        return batch

    def _flush(self, batch: List[LogEntry]) -> None:
        if not batch:
            return
        try:
            self._logger.write_batch(batch)
        except OSError as e:
            logger.error("Event log flush error: %s", e)

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_version_saved(
    document: str,
    version: str,
    size_bytes: int,
    duration_ms: float,
    pointer_mode: Optional[str] = None,
) -> LogEntry:
    """Build a version_saved entry (one per successful save)."""
    data = _base_entry(
        "version_saved",
        "INFO",
        document=document,
        version=version,
        size_bytes=size_bytes,
        duration_ms=duration_ms,
        pointer_mode=pointer_mode,
    )
    return LogEntry("documents", "execution", data)


def log_version_read(
    document: str,
    version: Optional[str],
    duration_ms: float,
    via_pointer: bool,
) -> LogEntry:
    data = _base_entry(
        "version_read",
        "INFO",
        document=document,
        version=version,
        duration_ms=duration_ms,
        via_pointer=via_pointer,
    )
    return LogEntry("documents", "performance", data)


def log_store_error(
    error: Any,
    object_type: str = "documents",
    level: str = "ERROR",
) -> LogEntry:
    """Build an error entry from a VersionStoreError (or anything with to_dict)."""
    details = error.to_dict() if hasattr(error, "to_dict") else {"message": str(error)}
    data = _base_entry(
        "store_error",
        level,
        document=details.get("document"),
        error=details,
    )
    return LogEntry(object_type, "errors", data)


def log_system_event(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> LogEntry:
    """Build a system event entry (startup, shutdown, config)."""
    data = _base_entry(event, level, details=details or None)
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Global Log Queue
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = ".versionstore/logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Initialize and start the global event log queue."""
    global _global_queue
    if _global_queue is not None:
        _global_queue.stop()
    _global_queue = AsyncLogQueue(
        file_logger=FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _global_queue.start()
    return _global_queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _global_queue


def log(entry: LogEntry) -> bool:
    """Push an entry to the global queue. Dropped when logging is not initialized."""
    if _global_queue is None:
        return False
    return _global_queue.push(entry)


def shutdown_logging() -> None:
    """Flush and stop the global event log queue."""
    global _global_queue
    if _global_queue:
        _global_queue.stop()
        _global_queue = None
