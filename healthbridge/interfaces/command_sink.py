# healthbridge/interfaces/command_sink.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Protocol

# CommandEvent.kind values
KIND_RECV = "recv"
KIND_OK = "ok"
KIND_ERROR = "error"
KIND_NOT_IMPLEMENTED = "not_implemented"


@dataclass(frozen=True, slots=True)
class CommandEvent:
    """
    One step in the life of a gateway command: received, then exactly one
    outcome. `payload` carries the arguments and, on outcome events, the
    reply (or error) and rtt_ms.
    """
    name: str                   # command name, e.g. "scanDevice"
    kind: str                   # KIND_*
    payload: Optional[Mapping[str, Any]] = None
    request_id: Optional[str] = None
    ts_utc: Optional[str] = None

    def as_record(self) -> Dict[str, Any]:
        """Flat dict for tracing; ts_utc filled in when absent, None fields dropped."""
        record = {
            "ts_utc": self.ts_utc or datetime.now(timezone.utc).isoformat(),
            "request_id": self.request_id,
            "name": self.name,
            "kind": self.kind,
            "payload": self.payload,
        }
        return {k: v for k, v in record.items() if v is not None}


class CommandSink(Protocol):
    def on_command(self, event: CommandEvent) -> None: ...
    def close(self) -> None: ...
