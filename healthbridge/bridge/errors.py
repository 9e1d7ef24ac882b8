# healthbridge/bridge/errors.py
from __future__ import annotations

from typing import Any

# Reply error kinds (machine-readable, part of the reply contract)
CONNECTION_FAILED = "CONNECTION_FAILED"
SCAN_TIMEOUT = "SCAN_TIMEOUT"
INVALID_TYPE = "INVALID_TYPE"
NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
SDK_ERROR = "SDK_ERROR"


class BridgeCommandError(Exception):
    """Base for failed gateway commands surfaced by BridgeClient."""

class CommandFailed(BridgeCommandError):
    def __init__(self, cmd: str, code: str, message: str, details: Any = None):
        super().__init__(f"{cmd} failed: {code} ({message})")
        self.cmd = cmd
        self.code = code
        self.message = message
        self.details = details

class CommandTimeout(BridgeCommandError):
    def __init__(self, cmd: str, timeout_s: float):
        super().__init__(f"{cmd} got no reply within {timeout_s}s")
        self.cmd = cmd
        self.timeout_s = timeout_s

class CommandNotImplemented(BridgeCommandError):
    def __init__(self, cmd: str):
        super().__init__(f"{cmd} is not implemented")
        self.cmd = cmd
        self.code = NOT_IMPLEMENTED
