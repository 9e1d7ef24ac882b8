# healthbridge/cli/commands.py
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from healthbridge.app.controller import BridgeController
from healthbridge.app.sinks import FanoutEventSink
from healthbridge.core.config_loader import load_config
from healthbridge.core.recording.command import CommandTraceLogger
from healthbridge.core.recording.events import EventRecordingSink
from healthbridge.interfaces import BridgeEvent, EventSink


# (name, arguments, reply)
COMMAND_TABLE = (
    ("connectLastDevice", "-", "{status, deviceName, deviceAddress} | CONNECTION_FAILED"),
    ("scanDevice", "-", "{status, deviceName, deviceAddress} | CONNECTION_FAILED | SCAN_TIMEOUT"),
    ("disconnectDevice", "-", "{status: disconnected}"),
    ("getConnectionState", "-", "SDK state code (10 = connected)"),
    ("startMeasurement", "type (default 0)", "{status: started}"),
    ("stopMeasurement", "type (default 0)", "{status: stopped}"),
    ("getMeasurementHistory", "type (2 = SpO2)", "{history: [{value, timestamp}]} | INVALID_TYPE"),
)


# ---------------- Event sink ----------------

class PrintEventSink(EventSink):
    """Print relayed events to stdout; signals when the device disconnects."""
    def __init__(self) -> None:
        self.disconnected = threading.Event()

    def on_event(self, event: BridgeEvent) -> None:
        print(f"EVENT {event.method} -> {dict(event.arguments)}")
        if event.method == "onConnectionStateChanged" and not event.arguments.get("connected", True):
            self.disconnected.set()

    def close(self) -> None:
        return None

# ---------------- Logging ----------------

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.WARNING))

    if not any(getattr(h, "_healthbridge_console", False) for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(_FORMAT))
        sh._healthbridge_console = True  # type: ignore[attr-defined]
        root.addHandler(sh)

    if log_file:
        configure_file_logging(Path(log_file))


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)

# ---------------- Commands ----------------

def cmd_commands() -> int:
    print("Gateway commands:\n")
    width = max(len(name) for name, _, _ in COMMAND_TABLE)
    for name, args, reply in COMMAND_TABLE:
        print(f"  {name.ljust(width)}  args: {args}")
        print(f"  {' ' * width}  reply: {reply}")
    print()
    print("Example:")
    print("  healthbridge call getMeasurementHistory --type 2")
    return 0


def cmd_call(args) -> int:
    cfg = load_config(args.config)
    cmd_sink = CommandTraceLogger(
        logger=logging.getLogger("commands"),
        file_path=Path(args.trace) if args.trace else None,
    )

    arguments = {} if args.type is None else {"type": int(args.type)}
    try:
        with BridgeController(cfg, cmd_sink=cmd_sink) as controller:
            resp = controller.call(args.name, arguments, timeout=args.timeout)
    finally:
        cmd_sink.close()

    print(json.dumps(resp, indent=2, ensure_ascii=False, default=str))
    return 0 if resp.get("status") == "ok" else 1


def cmd_monitor(args) -> int:
    cfg = load_config(args.config)

    printer = PrintEventSink()
    fanout = FanoutEventSink([printer])
    if args.record:
        fanout.add(EventRecordingSink(Path(args.record)))

    try:
        with BridgeController(cfg) as controller:
            controller.listen(fanout)
            client = controller.client

            device = client.scan_device() if args.scan else client.connect_last_device()
            print(f"Connected: {device.name} ({device.address or '-'})")

            client.start_measurement(args.type)
            try:
                printer.disconnected.wait(timeout=max(0.0, float(args.secs)))
            except KeyboardInterrupt:
                print("Interrupted.")
            finally:
                client.stop_measurement(args.type)
                client.disconnect_device()
                # the SDK reports the disconnect asynchronously
                printer.disconnected.wait(timeout=1.0)
                controller.flush(timeout=1.0)
    finally:
        fanout.close()

    return 0
