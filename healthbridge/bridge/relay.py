# healthbridge/bridge/relay.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from healthbridge.interfaces.event_sink import BridgeEvent, EventSink
from healthbridge.sdk.base import SdkClient
from healthbridge.sdk.codes import BLE_STATE_DISCONNECTED, CMD_MEASUREMENT_COMPLETE, REAL_DATA_SPO2
from healthbridge.sdk.events import ConnectionStateChanged, DeviceEvent, MeasurementComplete, RealTimeSample

from ._internal.delivery_loop import DeliveryLoop


def reshape_event(event: DeviceEvent) -> Optional[BridgeEvent]:
    """
    Map a recognized SDK event to its outbound record; None for anything else.
    """
    if isinstance(event, RealTimeSample):
        if event.data_type != REAL_DATA_SPO2:
            return None
        value = event.values.get("bloodOxygenValue")
        if not isinstance(value, int) or isinstance(value, bool):
            value = 0
        return BridgeEvent(
            method="onRealTimeData",
            arguments={"dataType": event.data_type, "bloodOxygenValue": value},
        )

    if isinstance(event, MeasurementComplete):
        if event.cmd != CMD_MEASUREMENT_COMPLETE or len(event.data) < 2:
            return None
        return BridgeEvent(
            method="onMeasurementComplete",
            arguments={"type": event.data[0] & 0xFF, "success": (event.data[1] & 0xFF) == 1},
        )

    if isinstance(event, ConnectionStateChanged):
        if event.ble_state != BLE_STATE_DISCONNECTED:
            return None
        return BridgeEvent(method="onConnectionStateChanged", arguments={"connected": False})

    return None


class SubscriberSlot:
    """
    Single-slot event subscriber registration.
    Only read/written on the delivery loop.
    """

    def __init__(self) -> None:
        self._sink: Optional[EventSink] = None

    @property
    def sink(self) -> Optional[EventSink]:
        return self._sink

    def set(self, sink: Optional[EventSink]) -> None:
        self._sink = sink


class EventRelay:
    """
    Forwards recognized SDK events to the current subscriber, if any.

    Reshaping runs on the SDK thread; the subscriber is looked up and called
    on the delivery loop, so pushes keep arrival order.
    """

    def __init__(self, sdk: SdkClient, loop: DeliveryLoop, *, logger: Optional[logging.Logger] = None):
        self._sdk = sdk
        self._loop = loop
        self._log = logger or logging.getLogger(__name__)

        self._slot = SubscriberSlot()
        self._unsubscribe_sdk: Optional[Callable[[], None]] = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe_sdk is not None

    # ---------------- SDK side ----------------
    def attach(self) -> None:
        if self._unsubscribe_sdk is not None:
            return
        self._unsubscribe_sdk = self._sdk.add_event_listener(self.on_sdk_event)
        self._log.info("RELAY_ATTACHED")

    def detach(self) -> None:
        if self._unsubscribe_sdk is None:
            return
        try:
            self._unsubscribe_sdk()
        finally:
            self._unsubscribe_sdk = None
            self._log.info("RELAY_DETACHED")

    def on_sdk_event(self, event: DeviceEvent) -> None:
        out = reshape_event(event)
        if out is None:
            self._log.debug("RELAY_EVENT_DROPPED type=%s", type(event).__name__)
            return
        if not self._loop.post(lambda: self._push(out)):
            self._log.debug("RELAY_EVENT_DROPPED_LOOP_STOPPED method=%s", out.method)

    # ---------------- Subscriber side ----------------
    def listen(self, sink: EventSink) -> None:
        """Make sink the active subscriber (replaces any previous one)."""
        self._loop.post(lambda: self._set_sink(sink))

    def cancel(self) -> None:
        self._loop.post(lambda: self._set_sink(None))

    def _set_sink(self, sink: Optional[EventSink]) -> None:
        self._slot.set(sink)
        self._log.info(
            "RELAY_SUBSCRIBER_%s sink=%s",
            "SET" if sink is not None else "CLEARED",
            type(sink).__name__ if sink is not None else None,
        )

    def _push(self, event: BridgeEvent) -> None:
        sink = self._slot.sink
        if sink is None:
            self._log.debug("RELAY_NO_SUBSCRIBER method=%s", event.method)
            return
        try:
            sink.on_event(event)
        except Exception:
            self._log.exception("RELAY_SINK_ON_EVENT_ERROR method=%s", event.method)
