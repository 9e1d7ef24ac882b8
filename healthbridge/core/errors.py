# healthbridge/core/errors.py
from __future__ import annotations


class HealthBridgeError(Exception):
    """
    Base class for all expected operational errors in healthbridge.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, embedding APIs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no SDK access yet)
# ---------------------------------------------------------------------------

class ConfigError(HealthBridgeError):
    """
    Bridge configuration is missing or invalid.

    Examples:
      - config file not found or not valid YAML
      - missing 'bridge' root node
      - non-positive timeouts
    """
    code = "config_error"


class SdkDriverError(HealthBridgeError):
    """
    SDK client could not be constructed.

    Examples:
      - unknown driver key
      - driver parameters do not match the driver constructor
    """
    code = "sdk_driver_error"


# ---------------------------------------------------------------------------
# Lifecycle errors
# ---------------------------------------------------------------------------

class BridgeNotStartedError(HealthBridgeError):
    """
    A command or subscription was issued before the bridge was started
    (or after it was stopped).
    """
    code = "bridge_not_started"
