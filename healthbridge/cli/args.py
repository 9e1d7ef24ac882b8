# healthbridge/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="healthbridge")
    parser.add_argument("--config", default=None, help="Bridge config YAML (default: packaged bridge.yml).")
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS, type=str.upper)
    parser.add_argument("--log-file", default=None, help="Also write INFO+ logs to this file.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("commands", help="List gateway commands.")

    p_call = sub.add_parser("call", help="Send one gateway command and print the reply.")
    p_call.add_argument("name", help="Command name, e.g. connectLastDevice.")
    p_call.add_argument("--type", type=int, default=None, help="Measurement type argument.")
    p_call.add_argument("--timeout", type=float, default=None, help="Reply wait in seconds.")
    p_call.add_argument("--trace", default=None, help="Append command trace JSONL to this file.")

    p_mon = sub.add_parser("monitor", help="Connect, measure, and print device events.")
    p_mon.add_argument("--type", type=int, default=0, help="Measurement type.")
    p_mon.add_argument("--secs", type=float, default=10.0, help="Measurement duration.")
    p_mon.add_argument("--record", default=None, help="Append events as JSONL to this file.")
    p_mon.add_argument("--scan", action="store_true", help="Scan for a device instead of reconnecting the last one.")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
