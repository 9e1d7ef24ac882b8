# healthbridge/app/sinks.py
from __future__ import annotations

import logging
from threading import Lock
from typing import Iterable, List, Optional

from healthbridge.interfaces.event_sink import BridgeEvent, EventSink


class FanoutEventSink(EventSink):
    """
    Single relay subscriber that forwards every event to several sinks.
    A failing sink is logged and skipped.
    """

    def __init__(self, sinks: Iterable[EventSink] = (), *, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger(__name__)
        self._lock = Lock()
        self._sinks: List[EventSink] = list(sinks)

    def add(self, sink: EventSink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    def remove(self, sink: EventSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def on_event(self, event: BridgeEvent) -> None:
        with self._lock:
            sinks = list(self._sinks)
        for s in sinks:
            try:
                s.on_event(event)
            except Exception:
                self._log.exception("SINK_ON_EVENT_ERROR method=%s", event.method)

    def close(self) -> None:
        with self._lock:
            sinks = list(self._sinks)
            self._sinks.clear()
        for s in sinks:
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR")
