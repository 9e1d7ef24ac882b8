from __future__ import annotations

import threading
from typing import Callable, List, Optional

import pytest

from healthbridge.bridge._internal.delivery_loop import DeliveryLoop
from healthbridge.sdk.base import SdkClient


class FakeSdk(SdkClient):
    """
    SdkClient stub: records calls and keeps callbacks so tests decide
    when (and from which thread) the SDK "answers".
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.state = 0
        self.raise_on: Optional[str] = None

        self.connect_last_cbs: list = []
        self.scan_cbs: list = []
        self.connect_cbs: list = []
        self.measure_cbs: list = []
        self.history_cbs: list = []
        self.listeners: list = []

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.raise_on == name:
            raise RuntimeError(f"{name} exploded")

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def connect_last_device(self, cb) -> None:
        self._record("connect_last_device")
        self.connect_last_cbs.append(cb)

    def start_scan_ble(self, cb) -> None:
        self._record("start_scan_ble")
        self.scan_cbs.append(cb)

    def stop_scan_ble(self) -> None:
        self._record("stop_scan_ble")

    def connect_device(self, mac, name, cb) -> None:
        self._record("connect_device", mac, name)
        self.connect_cbs.append(cb)

    def disconnect(self) -> None:
        self._record("disconnect")

    def connect_state(self) -> int:
        self._record("connect_state")
        return self.state

    def app_start_measurement(self, on_off, type_, cb) -> None:
        self._record("app_start_measurement", on_off, type_)
        self.measure_cbs.append(cb)

    def app_get_blood_oxygen_history_record(self, cb) -> None:
        self._record("app_get_blood_oxygen_history_record")
        self.history_cbs.append(cb)

    def add_event_listener(self, cb) -> Callable[[], None]:
        self.listeners.append(cb)

        def _unsubscribe() -> None:
            if cb in self.listeners:
                self.listeners.remove(cb)

        return _unsubscribe

    def emit(self, event) -> None:
        for cb in list(self.listeners):
            cb(event)


def run_in_thread(fn: Callable, *args) -> None:
    """Invoke fn(*args) on a fresh thread, like an SDK-internal callback."""
    t = threading.Thread(target=fn, args=args, daemon=True)
    t.start()
    t.join(timeout=2.0)


@pytest.fixture
def fake_sdk() -> FakeSdk:
    return FakeSdk()


@pytest.fixture
def sdk_thread():
    return run_in_thread


@pytest.fixture
def loop():
    lp = DeliveryLoop()
    lp.start()
    yield lp
    lp.stop(timeout=2.0)
