# healthbridge/bridge/scan_guard.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from healthbridge.sdk.base import DeviceInfo, SdkClient
from healthbridge.sdk.codes import CODE_OK

from ._internal.delivery_loop import DelayedHandle, DeliveryLoop
from ._internal.pending_reply import PendingReply
from .errors import CONNECTION_FAILED, SCAN_TIMEOUT


class ScanTimeoutGuard:
    """
    Scan-and-connect for one scanDevice request, bounded by a fixed window.

    States: idle -> scanning -> connecting -> resolved | timed_out.
    Every transition after start() runs on the delivery loop, so the first
    of {connect result, timeout} resolves the reply and the other is a no-op.
    """

    IDLE = "idle"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"

    def __init__(
        self,
        sdk: SdkClient,
        loop: DeliveryLoop,
        reply: PendingReply,
        *,
        timeout_s: float,
        connected_payload: Callable[[Optional[DeviceInfo]], dict],
        logger: Optional[logging.Logger] = None,
    ):
        self._sdk = sdk
        self._loop = loop
        self._reply = reply
        self.timeout_s = float(timeout_s)
        self._connected_payload = connected_payload
        self._log = logger or logging.getLogger(__name__)

        self.state = self.IDLE
        self.device: Optional[DeviceInfo] = None
        self._timer: Optional[DelayedHandle] = None

    def start(self) -> None:
        if self.state != self.IDLE:
            raise RuntimeError(f"ScanTimeoutGuard already started (state={self.state})")
        self.state = self.SCANNING
        self._log.info("SCAN_START request_id=%d timeout_s=%.1f", self._reply.request_id, self.timeout_s)
        # armed before the scan: the SDK may answer before start_scan_ble returns
        self._timer = self._loop.post_delayed(self.timeout_s, self._on_timeout)
        try:
            self._sdk.start_scan_ble(self._on_scan_callback)
        except Exception:
            self._timer.cancel()
            self.state = self.RESOLVED
            raise

    # ---------------- SDK threads ----------------
    def _on_scan_callback(self, code: int, device: Optional[DeviceInfo]) -> None:
        self._loop.post(lambda: self._on_scan_result(code, device))

    def _on_connect_callback(self, code: int) -> None:
        self._loop.post(lambda: self._on_connect_result(code))

    # ---------------- Delivery loop ----------------
    def _on_scan_result(self, code: int, device: Optional[DeviceInfo]) -> None:
        if code != CODE_OK or device is None:
            self._log.debug("SCAN_RESULT_SKIPPED request_id=%d code=%s", self._reply.request_id, code)
            return
        if self.state != self.SCANNING:
            self._log.debug(
                "SCAN_RESULT_IGNORED request_id=%d state=%s mac=%s",
                self._reply.request_id, self.state, device.device_mac,
            )
            return

        self.state = self.CONNECTING
        self.device = device
        self._log.info(
            "SCAN_DEVICE_FOUND request_id=%d name=%s mac=%s",
            self._reply.request_id, device.device_name, device.device_mac,
        )
        self._sdk.stop_scan_ble()
        self._sdk.connect_device(device.device_mac, device.device_name, self._on_connect_callback)

    def _on_connect_result(self, code: int) -> None:
        if self.state != self.CONNECTING:
            self._log.info("SCAN_LATE_CONNECT_RESULT request_id=%d state=%s code=%s",
                           self._reply.request_id, self.state, code)
            return

        if code == CODE_OK:
            self._reply.success(self._connected_payload(self.device))
        else:
            self._log.warning("SCAN_CONNECT_FAILED request_id=%d code=%s", self._reply.request_id, code)
            self._reply.error(CONNECTION_FAILED, f"Device connection failed: {code}")

        self.state = self.RESOLVED
        if self._timer is not None:
            self._timer.cancel()

    def _on_timeout(self) -> None:
        self._sdk.stop_scan_ble()
        if self._reply.done():
            return
        self.state = self.TIMED_OUT
        self._log.warning("SCAN_TIMEOUT request_id=%d timeout_s=%.1f", self._reply.request_id, self.timeout_s)
        self._reply.error(SCAN_TIMEOUT, "No device found")
