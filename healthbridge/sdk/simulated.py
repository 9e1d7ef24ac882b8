# healthbridge/sdk/simulated.py
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from .base import (
    ConnectCallback,
    ConnectResultCallback,
    DeviceInfo,
    EventListener,
    HistoryCallback,
    MeasureDataCallback,
    ScanCallback,
    SdkClient,
)
from .codes import (
    BLE_STATE_DISCONNECTED,
    CMD_MEASUREMENT_COMPLETE,
    CODE_FAILED,
    CODE_OK,
    MEASURE_ON,
    REAL_DATA_SPO2,
    STATE_CONNECTED,
    STATE_DISCONNECTED,
)
from .events import ConnectionStateChanged, DeviceEvent, MeasurementComplete, RealTimeSample


class SimulatedSdkClient(SdkClient):
    """
    In-process scripted SDK with a single SpO2 device.

    Every callback and event is invoked from a timer/worker thread, mirroring
    the vendor SDK's thread model. A device with neither name nor MAC is
    never discovered by a scan.
    """

    def __init__(
        self,
        *,
        device_name: Optional[str] = "SpO2 Band",
        device_mac: Optional[str] = "C0:FF:EE:00:00:01",
        connect_ok: bool = True,
        scan_delay_s: float = 0.2,
        connect_delay_s: float = 0.1,
        sample_interval_s: float = 0.5,
        spo2_values: Sequence[int] = (97, 98, 98, 97),
        history: Optional[Sequence[Dict[str, Any]]] = None,
        history_ok: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        self.device_name = device_name
        self.device_mac = device_mac
        self.connect_ok = bool(connect_ok)
        self.scan_delay_s = float(scan_delay_s)
        self.connect_delay_s = float(connect_delay_s)
        self.sample_interval_s = float(sample_interval_s)
        self.spo2_values = [int(v) for v in spo2_values]
        self.history = [dict(h) for h in (history or [])]
        self.history_ok = bool(history_ok)

        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._state = STATE_DISCONNECTED
        self._scanning = False
        self._listeners: List[EventListener] = []
        self._timers: List[threading.Timer] = []
        self._measure_stop: Optional[threading.Event] = None
        self._closed = False

    # ---------------- Helpers ----------------
    def _device(self) -> Optional[DeviceInfo]:
        if self.device_name is None and self.device_mac is None:
            return None
        return DeviceInfo(device_name=self.device_name, device_mac=self.device_mac)

    def _later(self, delay_s: float, fn: Callable[[], None]) -> None:
        with self._lock:
            if self._closed:
                return
            t = threading.Timer(max(0.0, delay_s), fn)
            t.daemon = True
            self._timers = [x for x in self._timers if x.is_alive()]
            self._timers.append(t)
        t.start()

    def _emit(self, event: DeviceEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for cb in listeners:
            try:
                cb(event)
            except Exception:
                self._log.exception("SIM_SDK_LISTENER_ERROR event=%s", type(event).__name__)

    # ---------------- Connection ----------------
    def connect_last_device(self, cb: ConnectCallback) -> None:
        def _done() -> None:
            device = self._device()
            if self.connect_ok and device is not None:
                with self._lock:
                    self._state = STATE_CONNECTED
                cb(CODE_OK, device)
            else:
                cb(CODE_FAILED, None)

        self._later(self.connect_delay_s, _done)

    def start_scan_ble(self, cb: ScanCallback) -> None:
        with self._lock:
            self._scanning = True

        def _found() -> None:
            with self._lock:
                scanning = self._scanning
            device = self._device()
            if scanning and device is not None:
                cb(CODE_OK, device)

        self._later(self.scan_delay_s, _found)

    def stop_scan_ble(self) -> None:
        with self._lock:
            self._scanning = False

    def connect_device(self, mac: Optional[str], name: Optional[str], cb: ConnectResultCallback) -> None:
        def _done() -> None:
            if self.connect_ok:
                with self._lock:
                    self._state = STATE_CONNECTED
                cb(CODE_OK)
            else:
                cb(CODE_FAILED)

        self._later(self.connect_delay_s, _done)

    def disconnect(self) -> None:
        with self._lock:
            was_connected = self._state == STATE_CONNECTED
            self._state = STATE_DISCONNECTED
            stop = self._measure_stop
            self._measure_stop = None
        if stop is not None:
            stop.set()
        if was_connected:
            self._later(0.0, lambda: self._emit(ConnectionStateChanged(ble_state=BLE_STATE_DISCONNECTED)))

    def connect_state(self) -> int:
        with self._lock:
            return self._state

    # ---------------- Measurement ----------------
    def app_start_measurement(self, on_off: int, type_: int, cb: Optional[MeasureDataCallback]) -> None:
        with self._lock:
            previous = self._measure_stop
            self._measure_stop = None
            connected = self._state == STATE_CONNECTED
        if previous is not None:
            previous.set()

        if int(on_off) != MEASURE_ON:
            return

        if not connected:
            self._log.warning("SIM_SDK_MEASURE_NOT_CONNECTED type=%d", int(type_))
            if cb is not None:
                self._later(0.0, lambda: cb(CODE_FAILED, None))
            return

        stop = threading.Event()
        with self._lock:
            self._measure_stop = stop

        def _run() -> None:
            for value in self.spo2_values:
                if stop.wait(self.sample_interval_s):
                    return
                values = {"bloodOxygenValue": value}
                self._emit(RealTimeSample(data_type=REAL_DATA_SPO2, values=values))
                if cb is not None:
                    cb(CODE_OK, dict(values))
            if not stop.is_set():
                self._emit(MeasurementComplete(cmd=CMD_MEASUREMENT_COMPLETE, data=(int(type_) & 0xFF, 1)))

        threading.Thread(target=_run, daemon=True).start()

    def app_get_blood_oxygen_history_record(self, cb: HistoryCallback) -> None:
        def _done() -> None:
            if self.history_ok:
                cb(CODE_OK, [dict(h) for h in self.history])
            else:
                cb(CODE_FAILED, None)

        self._later(self.connect_delay_s, _done)

    # ---------------- Events ----------------
    def add_event_listener(self, cb: EventListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(cb)

        def _unsubscribe() -> None:
            with self._lock:
                if cb in self._listeners:
                    self._listeners.remove(cb)

        return _unsubscribe

    def close(self) -> None:
        with self._lock:
            self._closed = True
            timers = list(self._timers)
            self._timers.clear()
            stop = self._measure_stop
            self._measure_stop = None
            self._scanning = False
        for t in timers:
            t.cancel()
        if stop is not None:
            stop.set()
