# healthbridge/core/recording/command.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from healthbridge.core.recording.jsonl_writer import JsonlWriter
from healthbridge.interfaces.command_sink import CommandEvent, CommandSink


@dataclass
class CommandTraceLogger(CommandSink):
    """
    Gateway command trace.

    Every event is logged at DEBUG; with file_path set it is also appended
    as one JSON line {ts_utc, request_id, name, kind, payload}.
    """
    logger: logging.Logger
    file_path: Optional[Path] = None
    flush_interval_s: float = 0.5
    events_seen: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self._writer: Optional[JsonlWriter] = None
        if self.file_path is not None:
            self._writer = JsonlWriter(
                Path(self.file_path),
                flush_interval_s=self.flush_interval_s,
                logger=self.logger,
            )

    def on_command(self, event: CommandEvent) -> None:
        self.events_seen += 1
        self.logger.debug("CMD_TRACE name=%s kind=%s request_id=%s", event.name, event.kind, event.request_id)
        if self._writer is None:
            return

        self._writer.write(event.as_record())

    def close(self) -> None:
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
