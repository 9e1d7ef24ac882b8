from ._internal.delivery_loop import DeliveryLoop
from ._internal.pending_reply import PendingReply
from .client import BridgeClient, ConnectedDevice, HistoryRecord
from .gateway import CommandGateway
from .relay import EventRelay
from .scan_guard import ScanTimeoutGuard

__all__ = [
    "DeliveryLoop", "PendingReply",
    "BridgeClient", "ConnectedDevice", "HistoryRecord",
    "CommandGateway", "EventRelay", "ScanTimeoutGuard"]
