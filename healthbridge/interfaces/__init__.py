from .command_sink import CommandEvent, CommandSink
from .event_sink import BridgeEvent, EventSink

__all__ = ["CommandEvent", "CommandSink", "BridgeEvent", "EventSink"]
