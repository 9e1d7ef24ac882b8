# healthbridge/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BridgeConfig:
    channel: str = "com.yucheng.smarthealthpro/ycbt"
    event_channel: str = "com.yucheng.smarthealthpro/ycbt_events"
    scan_timeout_s: float = 20.0
    reply_timeout_s: float = 30.0
    unnamed_device: str = "unnamed device"
    sdk_driver: str = "simulated"
    sdk_params: dict = field(default_factory=dict)
