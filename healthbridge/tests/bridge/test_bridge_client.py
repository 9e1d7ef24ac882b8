from __future__ import annotations

import threading

import pytest

from healthbridge.bridge.client import BridgeClient, ConnectedDevice, HistoryRecord
from healthbridge.bridge.errors import CommandFailed, CommandNotImplemented, CommandTimeout
from healthbridge.bridge.gateway import CommandGateway
from healthbridge.sdk.base import DeviceInfo
from healthbridge.sdk.codes import CODE_FAILED, CODE_OK


def _answer_soon(cbs, *args) -> None:
    """Fire the latest stored SDK callback shortly, from another thread."""
    threading.Timer(0.01, lambda: cbs[-1](*args)).start()


def _client(fake_sdk, loop, **kw) -> BridgeClient:
    gw = CommandGateway(fake_sdk, loop, scan_timeout_s=0.1, reply_timeout_s=1.0)
    return BridgeClient(gw, **kw)


def test_connect_last_device_returns_device(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    orig = fake_sdk.connect_last_device

    def connect_last_device(cb):
        orig(cb)
        _answer_soon(fake_sdk.connect_last_cbs, CODE_OK, DeviceInfo("Band", "AA:BB"))

    fake_sdk.connect_last_device = connect_last_device
    assert client.connect_last_device() == ConnectedDevice(name="Band", address="AA:BB")


def test_connect_last_device_failure_raises(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    orig = fake_sdk.connect_last_device

    def connect_last_device(cb):
        orig(cb)
        _answer_soon(fake_sdk.connect_last_cbs, CODE_FAILED, None)

    fake_sdk.connect_last_device = connect_last_device
    with pytest.raises(CommandFailed) as ei:
        client.connect_last_device()
    assert ei.value.code == "CONNECTION_FAILED"
    assert ei.value.cmd == "connectLastDevice"


def test_scan_device_timeout_raises_command_failed(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    with pytest.raises(CommandFailed) as ei:
        client.scan_device()
    assert ei.value.code == "SCAN_TIMEOUT"
    assert ei.value.message == "No device found"


def test_no_reply_raises_timeout(fake_sdk, loop):
    client = _client(fake_sdk, loop, timeout_s=0.05)
    with pytest.raises(CommandTimeout) as ei:
        client.connect_last_device()
    assert ei.value.timeout_s == 0.05


def test_state_and_is_connected(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    fake_sdk.state = 10
    assert client.get_connection_state() == 10
    assert client.is_connected() is True

    fake_sdk.state = 0
    assert client.is_connected() is False


def test_measurement_and_disconnect_calls(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    client.start_measurement(2)
    client.stop_measurement(2)
    client.disconnect_device()

    assert fake_sdk.called("app_start_measurement") == [
        ("app_start_measurement", 1, 2),
        ("app_start_measurement", 0, 2),
    ]
    assert fake_sdk.called("disconnect") == [("disconnect",)]


def test_get_measurement_history_records(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    orig = fake_sdk.app_get_blood_oxygen_history_record

    def history(cb):
        orig(cb)
        _answer_soon(
            fake_sdk.history_cbs,
            CODE_OK,
            [{"bloodOxygenValue": 97, "measurementDate": 1700000000}],
        )

    fake_sdk.app_get_blood_oxygen_history_record = history
    assert client.get_measurement_history(2) == [HistoryRecord(value=97, timestamp=1700000000)]


def test_get_measurement_history_invalid_type(fake_sdk, loop):
    client = _client(fake_sdk, loop)
    with pytest.raises(CommandFailed) as ei:
        client.get_measurement_history(1)
    assert ei.value.code == "INVALID_TYPE"


def test_require_ok_not_implemented():
    with pytest.raises(CommandNotImplemented) as ei:
        BridgeClient._require_ok({"status": "not_implemented"}, "reboot")
    assert ei.value.code == "NOT_IMPLEMENTED"
