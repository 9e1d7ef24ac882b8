# healthbridge/bridge/client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from healthbridge.sdk.codes import STATE_CONNECTED

from .errors import CommandFailed, CommandNotImplemented, CommandTimeout
from .gateway import CommandGateway


@dataclass(frozen=True)
class ConnectedDevice:
    name: str
    address: str


@dataclass(frozen=True)
class HistoryRecord:
    value: int
    timestamp: int


class BridgeClient:
    """
    User-facing API over CommandGateway.
    """

    def __init__(self, gateway: CommandGateway, *, timeout_s: Optional[float] = None):
        self._gateway = gateway
        self._timeout_s = timeout_s

    def _call(self, cmd_name: str, timeout_s: Optional[float] = None, **args: Any) -> Any:
        timeout = timeout_s if timeout_s is not None else self._timeout_s
        if timeout is None:
            timeout = self._gateway.reply_timeout_s
        resp = self._gateway.call(cmd_name, args, timeout=timeout)
        return self._require_ok(resp, cmd_name, timeout_s=timeout)

    @staticmethod
    def _require_ok(resp: dict, cmd_name: str, *, timeout_s: float | None = None) -> Any:
        status = resp.get("status")
        if status == "ok":
            return resp.get("payload")
        if status == "pending":
            raise CommandTimeout(cmd_name, timeout_s or 0.0)
        if status == "not_implemented":
            raise CommandNotImplemented(cmd_name)
        raise CommandFailed(
            cmd_name,
            str(resp.get("code")),
            str(resp.get("message")),
            resp.get("details"),
        )

    @staticmethod
    def _device(payload: dict) -> ConnectedDevice:
        return ConnectedDevice(name=str(payload["deviceName"]), address=str(payload["deviceAddress"]))

    def connect_last_device(self) -> ConnectedDevice:
        return self._device(self._call("connectLastDevice"))

    def scan_device(self) -> ConnectedDevice:
        # the gateway's scan window bounds the reply; wait a little longer than it
        return self._device(self._call("scanDevice", timeout_s=self._gateway.scan_timeout_s + 5.0))

    def disconnect_device(self) -> None:
        self._call("disconnectDevice")

    def get_connection_state(self) -> int:
        return int(self._call("getConnectionState"))

    def is_connected(self) -> bool:
        return self.get_connection_state() == STATE_CONNECTED

    def start_measurement(self, type_: int = 0) -> None:
        self._call("startMeasurement", type=int(type_))

    def stop_measurement(self, type_: int = 0) -> None:
        self._call("stopMeasurement", type=int(type_))

    def get_measurement_history(self, type_: int) -> List[HistoryRecord]:
        payload = self._call("getMeasurementHistory", type=int(type_)) or {}
        return [
            HistoryRecord(value=int(h["value"]), timestamp=int(h["timestamp"]))
            for h in payload.get("history") or []
        ]
