# healthbridge/sdk/events.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple, Union


@dataclass(frozen=True, slots=True)
class RealTimeSample:
    """Real-time measurement sample; `values` holds the SDK's keyed fields."""
    data_type: int
    values: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MeasurementComplete:
    """Device-to-app notification; `data` is the raw command payload."""
    cmd: int
    data: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))


@dataclass(frozen=True, slots=True)
class ConnectionStateChanged:
    ble_state: int


DeviceEvent = Union[RealTimeSample, MeasurementComplete, ConnectionStateChanged]
