# healthbridge/interfaces/event_sink.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Protocol


@dataclass(frozen=True, slots=True)
class BridgeEvent:
    """Outbound event record: method name + argument map."""
    method: str                 # "onRealTimeData" | "onMeasurementComplete" | "onConnectionStateChanged"
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"method": self.method, "arguments": dict(self.arguments)}


class EventSink(Protocol):
    def on_event(self, event: BridgeEvent) -> None: ...
    def close(self) -> None: ...
