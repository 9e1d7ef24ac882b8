# healthbridge/bridge/_internal/pending_reply.py
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, InvalidStateError
from typing import Any, Callable, Optional


class PendingReply:
    """
    Holds a Future for one in-flight gateway command.

    Exactly one of success()/error()/not_implemented() takes effect; later
    calls return False and leave the outcome untouched.
    """

    def __init__(self, request_id: int, command: str, *, logger: Optional[logging.Logger] = None):
        self.request_id = int(request_id)
        self.command = str(command)
        self.created_at = time.perf_counter()
        self.future: Future = Future()
        self._log = logger or logging.getLogger(__name__)

    def add_done_callback(self, cb: Callable[[Future], Any]) -> Any:
        """Forward callback registration to the underlying Future."""
        return self.future.add_done_callback(cb)

    def done(self) -> bool:
        return self.future.done()

    def success(self, payload: Any = None) -> bool:
        return self._resolve({"status": "ok", "payload": payload})

    def error(self, code: str, message: str, details: Any = None) -> bool:
        return self._resolve({"status": "error", "code": code, "message": message, "details": details})

    def not_implemented(self) -> bool:
        return self._resolve({"status": "not_implemented"})

    def _resolve(self, outcome: dict) -> bool:
        if self.future.done():
            self._log.debug(
                "REPLY_ALREADY_RESOLVED request_id=%d cmd=%s ignored=%s",
                self.request_id, self.command, outcome.get("status"),
            )
            return False
        try:
            self.future.set_result(outcome)
        except InvalidStateError:
            return False
        return True

    def wait(self, timeout: Optional[float] = None) -> dict:
        """Blocking wait for the outcome; {'status': 'pending'} on timeout."""
        try:
            return self.future.result(timeout=timeout)
        except Exception:
            return {"status": "pending"}
