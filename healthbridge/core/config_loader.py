# healthbridge/core/config_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from healthbridge.app.config import BridgeConfig
from healthbridge.core.errors import ConfigError


def default_config_path() -> Path:
    # <package>/config/bridge.yml, relative to this file
    return Path(__file__).resolve().parents[1] / "config" / "bridge.yml"


def _positive_float(section: Mapping[str, Any], key: str, default: float) -> float:
    raw = section.get(key, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigError(
            f"'{key}' must be a number.",
            details={"key": key, "value": raw},
        ) from None
    if value <= 0:
        raise ConfigError(
            f"'{key}' must be > 0.",
            details={"key": key, "value": raw},
        )
    return value


def config_from_dict(data: Mapping[str, Any]) -> BridgeConfig:
    """
    Build a BridgeConfig from the parsed YAML document.

    Layout:
        bridge: {channel, event_channel, scan_timeout_s, reply_timeout_s, unnamed_device}
        sdk:    {driver, params}
    """
    bridge = data.get("bridge")
    if not isinstance(bridge, dict):
        raise ConfigError(
            "Config is missing 'bridge' root node.",
            hint="Start the file with a 'bridge:' mapping.",
        )

    sdk = data.get("sdk") or {}
    if not isinstance(sdk, dict):
        raise ConfigError("'sdk' must be a mapping.")

    params = sdk.get("params") or {}
    if not isinstance(params, dict):
        raise ConfigError("'sdk.params' must be a mapping.")

    defaults = BridgeConfig()
    return BridgeConfig(
        channel=str(bridge.get("channel", defaults.channel)),
        event_channel=str(bridge.get("event_channel", defaults.event_channel)),
        scan_timeout_s=_positive_float(bridge, "scan_timeout_s", defaults.scan_timeout_s),
        reply_timeout_s=_positive_float(bridge, "reply_timeout_s", defaults.reply_timeout_s),
        unnamed_device=str(bridge.get("unnamed_device", defaults.unnamed_device)),
        sdk_driver=str(sdk.get("driver", defaults.sdk_driver)),
        sdk_params=dict(params),
    )


def load_config(path: str | Path | None = None) -> BridgeConfig:
    full_path = Path(path) if path is not None else default_config_path()
    if not full_path.exists():
        raise ConfigError(
            f"Missing config file: {full_path}",
            hint="Pass --config or use the packaged default.",
            details={"path": str(full_path)},
        )

    try:
        with open(full_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            "Failed to parse config file.",
            hint=str(e),
            details={"path": str(full_path)},
        ) from None

    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping.", details={"path": str(full_path)})

    return config_from_dict(data)
