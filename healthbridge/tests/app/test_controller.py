from __future__ import annotations

import threading

import pytest

from healthbridge.app.config import BridgeConfig
from healthbridge.app.controller import BridgeController
from healthbridge.bridge.client import ConnectedDevice, HistoryRecord
from healthbridge.core.errors import BridgeNotStartedError, SdkDriverError
from healthbridge.sdk.events import ConnectionStateChanged


FAST_SIM = {
    "scan_delay_s": 0.01,
    "connect_delay_s": 0.01,
    "sample_interval_s": 0.01,
    "spo2_values": [97, 98],
    "history": [{"bloodOxygenValue": 96, "measurementDate": 1700000000}],
}


class WaitingSink:
    def __init__(self):
        self.events = []
        self.closed = False
        self._cond = threading.Condition()

    def on_event(self, event) -> None:
        with self._cond:
            self.events.append(event)
            self._cond.notify_all()

    def close(self) -> None:
        self.closed = True

    def wait_for(self, count: int, timeout: float = 2.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.events) >= count, timeout)


def _config(**kw) -> BridgeConfig:
    kw.setdefault("scan_timeout_s", 1.0)
    kw.setdefault("reply_timeout_s", 2.0)
    kw.setdefault("sdk_params", dict(FAST_SIM))
    return BridgeConfig(**kw)


def test_not_started_raises():
    ctrl = BridgeController(_config())
    try:
        assert ctrl.is_started is False
        with pytest.raises(BridgeNotStartedError):
            ctrl.call("getConnectionState")
        with pytest.raises(BridgeNotStartedError):
            ctrl.listen(WaitingSink())
        assert ctrl.flush(0.1) is False
    finally:
        ctrl.stop()


def test_unknown_driver_fails_fast():
    with pytest.raises(SdkDriverError):
        BridgeController(_config(sdk_driver="vendor"))


def test_full_session_with_simulated_sdk():
    with BridgeController(_config()) as ctrl:
        assert ctrl.is_started
        client = ctrl.client
        sink = WaitingSink()
        ctrl.listen(sink)

        device = client.scan_device()
        assert device == ConnectedDevice(name="SpO2 Band", address="C0:FF:EE:00:00:01")
        assert client.is_connected()

        client.start_measurement(2)
        assert sink.wait_for(3)
        assert [e.method for e in sink.events[:3]] == [
            "onRealTimeData",
            "onRealTimeData",
            "onMeasurementComplete",
        ]
        assert sink.events[2].arguments == {"type": 2, "success": True}

        assert client.get_measurement_history(2) == [HistoryRecord(96, 1700000000)]

        client.disconnect_device()
        assert sink.wait_for(4)
        assert ctrl.flush(1.0)
        assert sink.events[-1].method == "onConnectionStateChanged"
        assert client.get_connection_state() == 0

    assert ctrl.is_started is False


def test_unknown_command_through_controller():
    with BridgeController(_config()) as ctrl:
        assert ctrl.call("reboot") == {"status": "not_implemented"}


def test_injected_sdk_is_not_closed(fake_sdk):
    closed = []
    fake_sdk.close = lambda: closed.append(True)

    ctrl = BridgeController(_config(), sdk=fake_sdk)
    ctrl.start()
    assert len(fake_sdk.listeners) == 1
    ctrl.stop()

    assert fake_sdk.listeners == []
    assert closed == []


def test_stop_drops_subscriber(fake_sdk):
    ctrl = BridgeController(_config(), sdk=fake_sdk)
    ctrl.start()
    sink = WaitingSink()
    ctrl.listen(sink)
    assert ctrl.flush(1.0)
    relay = ctrl.relay
    ctrl.stop()

    relay.on_sdk_event(ConnectionStateChanged(0))
    assert sink.events == []
    with pytest.raises(BridgeNotStartedError):
        _ = ctrl.gateway


def test_start_twice_is_noop(fake_sdk):
    ctrl = BridgeController(_config(), sdk=fake_sdk)
    ctrl.start()
    try:
        gw = ctrl.gateway
        ctrl.start()
        assert ctrl.gateway is gw
    finally:
        ctrl.stop()


def test_cmd_sink_is_wired(fake_sdk):
    events = []

    class Sink:
        def on_command(self, event) -> None:
            events.append((event.name, event.kind))

        def close(self) -> None:
            pass

    with BridgeController(_config(), sdk=fake_sdk, cmd_sink=Sink()) as ctrl:
        ctrl.call("disconnectDevice")
        assert ctrl.flush(1.0)

    assert events == [("disconnectDevice", "recv"), ("disconnectDevice", "ok")]


def test_restart_after_stop_with_owned_sdk_raises():
    ctrl = BridgeController(_config())
    ctrl.start()
    ctrl.stop()

    with pytest.raises(BridgeNotStartedError) as ei:
        ctrl.start()
    assert ei.value.hint
    assert ctrl.is_started is False
    ctrl.stop()


def test_restart_with_injected_sdk_is_allowed(fake_sdk):
    ctrl = BridgeController(_config(), sdk=fake_sdk)
    ctrl.start()
    ctrl.stop()

    ctrl.start()
    try:
        assert ctrl.call("disconnectDevice") == {"status": "ok", "payload": {"status": "disconnected"}}
    finally:
        ctrl.stop()
