# healthbridge/bridge/gateway.py
from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from healthbridge.core.errors import BridgeNotStartedError
from healthbridge.interfaces.command_sink import KIND_ERROR, KIND_RECV, CommandEvent, CommandSink
from healthbridge.sdk.base import DeviceInfo, SdkClient
from healthbridge.sdk.codes import CODE_OK, HISTORY_TYPE_SPO2, MEASURE_OFF, MEASURE_ON

from ._internal.delivery_loop import DeliveryLoop
from ._internal.pending_reply import PendingReply
from .errors import CONNECTION_FAILED, INVALID_TYPE, SDK_ERROR
from .scan_guard import ScanTimeoutGuard

Handler = Callable[[PendingReply, Dict[str, Any]], None]


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return default


def history_from_records(records: Iterable[Any]) -> List[Dict[str, int]]:
    """SDK SpO2 history records -> [{value, timestamp}]; non-int fields become 0, non-mapping items are skipped."""
    return [
        {
            "value": _as_int(item.get("bloodOxygenValue")),
            "timestamp": _as_int(item.get("measurementDate")),
        }
        for item in records
        if isinstance(item, Mapping)
    ]


class CommandGateway:
    """
    Receives named commands, invokes the SDK, and resolves one PendingReply
    per command on the delivery loop.
    """

    def __init__(
        self,
        sdk: SdkClient,
        loop: DeliveryLoop,
        *,
        scan_timeout_s: float = 20.0,
        reply_timeout_s: float = 30.0,
        unnamed_device: str = "unnamed device",
        cmd_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._sdk = sdk
        self._loop = loop
        self.scan_timeout_s = float(scan_timeout_s)
        self.reply_timeout_s = float(reply_timeout_s)
        self.unnamed_device = unnamed_device
        self._cmd_sink = cmd_sink
        self._log = logger or logging.getLogger(__name__)

        self._ids = itertools.count(1)
        self._handlers: Dict[str, Handler] = {
            "connectLastDevice": self._connect_last_device,
            "scanDevice": self._scan_device,
            "disconnectDevice": self._disconnect_device,
            "getConnectionState": self._get_connection_state,
            "startMeasurement": self._start_measurement,
            "stopMeasurement": self._stop_measurement,
            "getMeasurementHistory": self._get_measurement_history,
        }

    def commands(self) -> List[str]:
        return list(self._handlers.keys())

    # ---------------- Command API ----------------
    def handle(self, command: str, arguments: Optional[Mapping[str, Any]] = None) -> PendingReply:
        if not self._loop.is_alive():
            raise BridgeNotStartedError(
                "Delivery loop is not running.",
                hint="Start the bridge before sending commands.",
                details={"command": command},
            )

        reply = PendingReply(next(self._ids), command, logger=self._log)
        args = dict(arguments) if isinstance(arguments, Mapping) else {}
        self._trace(reply, args)

        handler = self._handlers.get(command)
        if handler is None:
            self._log.warning("CMD_NOT_IMPLEMENTED request_id=%d cmd=%s", reply.request_id, command)
            self._deliver(reply.not_implemented)
            return reply

        self._log.debug("CMD_RECV request_id=%d cmd=%s args=%s", reply.request_id, command, args)
        try:
            handler(reply, args)
        except Exception as e:
            self._log.exception("CMD_SDK_CALL_FAILED request_id=%d cmd=%s", reply.request_id, command)
            message = f"SDK call failed: {e}"
            self._deliver(lambda: reply.error(SDK_ERROR, message))
        return reply

    def call(
        self,
        command: str,
        arguments: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> dict:
        reply = self.handle(command, arguments)
        return reply.wait(timeout=timeout if timeout is not None else self.reply_timeout_s)

    # ---------------- Helpers ----------------
    def _deliver(self, fn: Callable[[], Any]) -> None:
        if not self._loop.post(fn):
            self._log.warning("REPLY_DROPPED_LOOP_STOPPED fn=%r", fn)

    def _int_arg(self, args: Mapping[str, Any], name: str) -> int:
        value = args.get(name)
        if value is None:
            return 0
        if not isinstance(value, int) or isinstance(value, bool):
            self._log.warning("CMD_ARG_NOT_INT name=%s value=%r defaulting=0", name, value)
            return 0
        return value

    def connected_payload(self, device: Optional[DeviceInfo]) -> dict:
        name = device.device_name if device is not None else None
        mac = device.device_mac if device is not None else None
        return {
            "status": "connected",
            "deviceName": name if name is not None else self.unnamed_device,
            "deviceAddress": mac if mac is not None else "",
        }

    # ---------------- Handlers ----------------
    def _connect_last_device(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        def _resolve(code: int, device: Optional[DeviceInfo]) -> None:
            if code == CODE_OK:
                self._log.info("CONNECTED_LAST_DEVICE request_id=%d mac=%s",
                               reply.request_id, device.device_mac if device else None)
                reply.success(self.connected_payload(device))
            else:
                self._log.warning("CONNECT_LAST_DEVICE_FAILED request_id=%d code=%s", reply.request_id, code)
                reply.error(CONNECTION_FAILED, "Device connection failed")

        self._sdk.connect_last_device(lambda code, device: self._deliver(lambda: _resolve(code, device)))

    def _scan_device(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        guard = ScanTimeoutGuard(
            self._sdk,
            self._loop,
            reply,
            timeout_s=self.scan_timeout_s,
            connected_payload=self.connected_payload,
            logger=self._log,
        )
        guard.start()

    def _disconnect_device(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        self._sdk.disconnect()
        self._deliver(lambda: reply.success({"status": "disconnected"}))

    def _get_connection_state(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        state = self._sdk.connect_state()
        self._deliver(lambda: reply.success(state))

    def _start_measurement(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        type_ = self._int_arg(args, "type")
        self._log.info("MEASUREMENT_START request_id=%d type=%d", reply.request_id, type_)
        self._sdk.app_start_measurement(MEASURE_ON, type_, self._on_measure_data)
        self._deliver(lambda: reply.success({"status": "started"}))

    def _stop_measurement(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        type_ = self._int_arg(args, "type")
        self._log.info("MEASUREMENT_STOP request_id=%d type=%d", reply.request_id, type_)
        self._sdk.app_start_measurement(MEASURE_OFF, type_, None)
        self._deliver(lambda: reply.success({"status": "stopped"}))

    def _on_measure_data(self, code: int, data: Optional[Mapping[str, Any]]) -> None:
        # measurement values reach the app through the event relay
        self._log.debug("MEASURE_DATA code=%s data=%s", code, data)

    def _get_measurement_history(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        type_ = self._int_arg(args, "type")
        if type_ != HISTORY_TYPE_SPO2:
            self._log.warning("HISTORY_INVALID_TYPE request_id=%d type=%d", reply.request_id, type_)
            self._deliver(lambda: reply.error(INVALID_TYPE, f"Unsupported measurement type: {type_}"))
            return

        def _resolve(code: int, data: Optional[List[Mapping[str, Any]]]) -> None:
            history: List[Dict[str, int]] = []
            if code == CODE_OK and data is not None:
                try:
                    history = history_from_records(data)
                except Exception:
                    self._log.exception("HISTORY_FETCH_FAILED request_id=%d malformed payload", reply.request_id)
            else:
                self._log.warning("HISTORY_FETCH_FAILED request_id=%d code=%s", reply.request_id, code)
            reply.success({"history": history})

        self._sdk.app_get_blood_oxygen_history_record(
            lambda code, data: self._deliver(lambda: _resolve(code, data))
        )

    # ---------------- Telemetry ----------------
    def _emit(self, event: CommandEvent) -> None:
        try:
            self._cmd_sink.on_command(event)  # type: ignore[union-attr]
        except Exception:
            self._log.exception("CMD_SINK_ERROR cmd=%s kind=%s", event.name, event.kind)

    def _trace(self, reply: PendingReply, args: Dict[str, Any]) -> None:
        if self._cmd_sink is None:
            return

        request_id = str(reply.request_id)
        self._emit(CommandEvent(name=reply.command, kind=KIND_RECV, request_id=request_id, payload={"args": args}))

        start_ts = reply.created_at

        def _on_done(fut) -> None:
            rtt_ms = (time.perf_counter() - start_ts) * 1000.0
            outcome = fut.result()
            status = outcome.get("status")
            if status == "ok":
                payload = {"args": args, "response": outcome.get("payload"), "rtt_ms": rtt_ms}
            else:
                payload = {"args": args, "error": outcome, "rtt_ms": rtt_ms}
            self._emit(CommandEvent(name=reply.command, kind=status or KIND_ERROR, request_id=request_id, payload=payload))

        reply.add_done_callback(_on_done)
