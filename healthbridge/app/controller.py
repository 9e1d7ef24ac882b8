# healthbridge/app/controller.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from healthbridge.app.config import BridgeConfig
from healthbridge.bridge._internal.delivery_loop import DeliveryLoop
from healthbridge.bridge._internal.pending_reply import PendingReply
from healthbridge.bridge.client import BridgeClient
from healthbridge.bridge.gateway import CommandGateway
from healthbridge.bridge.relay import EventRelay
from healthbridge.core.errors import BridgeNotStartedError
from healthbridge.interfaces import CommandSink, EventSink
from healthbridge.sdk.base import SdkClient
from healthbridge.sdk.registry import SdkDriverRegistry


class BridgeController:
    """
    App-level controller: wires SDK client, delivery loop, command gateway
    and event relay, and owns their lifecycle.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        sdk: Optional[SdkClient] = None,
        drivers: Optional[SdkDriverRegistry] = None,
        cmd_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._cmd_sink = cmd_sink

        self._owns_sdk = sdk is None
        self._sdk_closed = False
        if sdk is None:
            drivers = drivers or SdkDriverRegistry.default()
            sdk = drivers.create(config.sdk_driver, **dict(config.sdk_params))
        self._sdk = sdk

        self._loop: Optional[DeliveryLoop] = None
        self._gateway: Optional[CommandGateway] = None
        self._relay: Optional[EventRelay] = None

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def sdk(self) -> SdkClient:
        return self._sdk

    @property
    def is_started(self) -> bool:
        return self._loop is not None and self._loop.is_alive()

    @property
    def gateway(self) -> CommandGateway:
        if self._gateway is None:
            raise BridgeNotStartedError("Bridge not started (gateway is None).")
        return self._gateway

    @property
    def relay(self) -> EventRelay:
        if self._relay is None:
            raise BridgeNotStartedError("Bridge not started (relay is None).")
        return self._relay

    @property
    def client(self) -> BridgeClient:
        return BridgeClient(self.gateway, timeout_s=self._config.reply_timeout_s)

    def start(self) -> None:
        if self.is_started:
            return
        if self._sdk_closed:
            raise BridgeNotStartedError(
                "Bridge was stopped and its SDK client closed.",
                hint="Create a new BridgeController to reconnect.",
                details={"driver": self._config.sdk_driver},
            )

        self._log.info(
            "BRIDGE_START channel=%s event_channel=%s driver=%s",
            self._config.channel,
            self._config.event_channel,
            self._config.sdk_driver,
        )

        loop = DeliveryLoop(logger=self._log)
        loop.start()
        self._loop = loop

        self._gateway = CommandGateway(
            self._sdk,
            loop,
            scan_timeout_s=self._config.scan_timeout_s,
            reply_timeout_s=self._config.reply_timeout_s,
            unnamed_device=self._config.unnamed_device,
            cmd_sink=self._cmd_sink,
            logger=self._log,
        )
        self._relay = EventRelay(self._sdk, loop, logger=self._log)

        try:
            self._relay.attach()
        except Exception:
            self._log.exception("RELAY_ATTACH_FAILED")
            self.stop()
            raise

    def stop(self) -> None:
        self._log.info("BRIDGE_STOP")

        if self._relay is not None:
            try:
                self._relay.cancel()
                self._relay.detach()
            except Exception:
                self._log.exception("RELAY_DETACH_ERROR")
            self._relay = None

        self._gateway = None

        if self._loop is not None:
            self._loop.stop(timeout=2.0)
            self._loop = None

        if self._owns_sdk and not self._sdk_closed:
            self._sdk_closed = True
            try:
                self._sdk.close()
            except Exception:
                self._log.exception("SDK_CLOSE_ERROR")

    def __enter__(self) -> "BridgeController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # passthrough ops
    def handle(self, command: str, arguments: Optional[Mapping[str, Any]] = None) -> PendingReply:
        return self.gateway.handle(command, arguments)

    def call(self, command: str, arguments: Optional[Mapping[str, Any]] = None, timeout: Optional[float] = None) -> dict:
        return self.gateway.call(command, arguments, timeout=timeout)

    def listen(self, sink: EventSink) -> None:
        self.relay.listen(sink)

    def cancel(self) -> None:
        self.relay.cancel()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every reply/event already queued has been delivered."""
        if self._loop is None:
            return False
        return self._loop.flush(timeout)
