# healthbridge/cli/main.py
from __future__ import annotations

from typing import Optional

from healthbridge.bridge.errors import BridgeCommandError
from healthbridge.core.errors import HealthBridgeError

from healthbridge.cli.args import parse_args
from healthbridge.cli.commands import (
    cmd_commands,
    cmd_call,
    cmd_monitor,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        if args.cmd == "commands":
            return cmd_commands()
        if args.cmd == "call":
            return cmd_call(args)
        if args.cmd == "monitor":
            return cmd_monitor(args)

        return 2
    except HealthBridgeError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except BridgeCommandError as e:
        print(f"ERROR: {e}")
        return 1
