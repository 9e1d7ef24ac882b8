# healthbridge/sdk/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .events import DeviceEvent


@dataclass(frozen=True)
class DeviceInfo:
    device_name: Optional[str] = None
    device_mac: Optional[str] = None


ConnectCallback = Callable[[int, Optional[DeviceInfo]], None]      # (code, device)
ScanCallback = Callable[[int, Optional[DeviceInfo]], None]         # (code, device)
ConnectResultCallback = Callable[[int], None]                      # (code)
MeasureDataCallback = Callable[[int, Optional[Dict[str, Any]]], None]
HistoryCallback = Callable[[int, Optional[List[Dict[str, Any]]]], None]
EventListener = Callable[[DeviceEvent], None]


class SdkClient(ABC):
    """
    Abstract vendor SDK client (BLE health device).

    Contract:
      - Operations return immediately; results arrive through callbacks with
        a status code (CODE_OK on success) and an optional payload.
      - Callbacks and published events may be invoked from any SDK-internal
        thread, never assume the caller's thread.
      - connect_state() is a synchronous read of the SDK's connection state.
    """

    @abstractmethod
    def connect_last_device(self, cb: ConnectCallback) -> None: ...

    @abstractmethod
    def start_scan_ble(self, cb: ScanCallback) -> None: ...

    @abstractmethod
    def stop_scan_ble(self) -> None: ...

    @abstractmethod
    def connect_device(self, mac: Optional[str], name: Optional[str], cb: ConnectResultCallback) -> None: ...

    @abstractmethod
    def disconnect(self) -> None: ...

    @abstractmethod
    def connect_state(self) -> int: ...

    @abstractmethod
    def app_start_measurement(self, on_off: int, type_: int, cb: Optional[MeasureDataCallback]) -> None: ...

    @abstractmethod
    def app_get_blood_oxygen_history_record(self, cb: HistoryCallback) -> None: ...

    @abstractmethod
    def add_event_listener(self, cb: EventListener) -> Callable[[], None]:
        """Register for published DeviceEvents; returns an unsubscribe callable."""

    def close(self) -> None:
        return None

    def __enter__(self) -> "SdkClient":
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
