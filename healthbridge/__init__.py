from .app.config import BridgeConfig
from .app.controller import BridgeController
from .bridge.client import BridgeClient
from .bridge.gateway import CommandGateway
from .bridge.relay import EventRelay

__all__ = ["BridgeConfig",
           "BridgeController",
           "BridgeClient",
           "CommandGateway",
           "EventRelay"]
