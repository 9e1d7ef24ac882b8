# healthbridge/core/recording/events.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from healthbridge.core.recording.jsonl_writer import JsonlWriter
from healthbridge.interfaces.event_sink import BridgeEvent, EventSink


class EventRecordingSink(EventSink):
    """Appends relayed events to a JSONL file: {ts_utc, method, arguments}."""

    def __init__(
        self,
        file_path: Path,
        *,
        flush_interval_s: float = 0.5,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)
        self.file_path = Path(file_path)
        self._writer: Optional[JsonlWriter] = JsonlWriter(
            self.file_path,
            flush_interval_s=flush_interval_s,
            logger=self._log,
        )
        self.events_written = 0

    def on_event(self, event: BridgeEvent) -> None:
        if self._writer is None:
            return
        if self._writer.write({"ts_utc": datetime.now(timezone.utc).isoformat(), **event.as_dict()}):
            self.events_written += 1

    def close(self) -> None:
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
            self._log.info("EVENT_RECORDING_CLOSED path=%s events=%d", self.file_path, self.events_written)
