# healthbridge/core/recording/jsonl_writer.py
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Callable, List, Mapping, Optional

_STOP = object()


class JsonlWriter:
    """
    Background JSON-lines appender.

    Records are serialized on the caller's thread (so later mutation cannot
    leak into the file) and appended in batches by a daemon thread. A batch
    is appended once the queue has been idle for flush_interval_s or holds
    max_batch lines (immediately when flush_interval_s is 0). close() writes
    everything queued before it and joins the thread.
    """

    def __init__(
        self,
        path: Path,
        *,
        flush_interval_s: float = 0.5,
        max_batch: int = 256,
        append_func: Optional[Callable[[Path, List[str]], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._path = Path(path)
        self._flush_interval_s = max(0.0, float(flush_interval_s))
        self._max_batch = max(1, int(max_batch))
        self._append = append_func or _append_lines
        self._log = logger or logging.getLogger(__name__)

        self._queue: Queue[Any] = Queue()
        self._closed = threading.Event()
        self.lines_written = 0

        self._thread = threading.Thread(target=self._run, name=f"jsonl-writer:{self._path.name}", daemon=True)
        self._thread.start()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, record: Mapping[str, Any]) -> bool:
        """Queue one record; False once closed."""
        if self._closed.is_set():
            return False
        self._queue.put(json.dumps(record, ensure_ascii=False, default=str))
        return True

    def close(self, timeout: Optional[float] = None) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self._queue.put(_STOP)
        self._thread.join(timeout)

    # ---------------- Worker ----------------
    def _run(self) -> None:
        pending: List[str] = []
        while True:
            try:
                item = self._queue.get(timeout=self._flush_interval_s or None)
            except Empty:
                item = None

            if item is _STOP:
                self._append_safe(pending)
                return
            if item is not None:
                pending.append(item)
                if len(pending) < self._max_batch and not self._queue.empty():
                    continue

            if pending and (item is None or len(pending) >= self._max_batch or self._flush_interval_s == 0.0):
                self._append_safe(pending)
                pending = []

    def _append_safe(self, lines: List[str]) -> None:
        if not lines:
            return
        try:
            self._append(self._path, lines)
            self.lines_written += len(lines)
        except Exception:
            # the batch is dropped; the worker keeps running
            self._log.exception("JSONL_WRITE_FAILED path=%s lines=%d", self._path, len(lines))


def _append_lines(path: Path, lines: List[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
