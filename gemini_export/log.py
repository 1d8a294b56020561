"""Stderr log helpers shared by every module."""

import sys

PREFIX = "[GCE]"

_debug = False


def set_debug(enabled: bool):
    global _debug
    _debug = bool(enabled)


def log_debug(msg):
    if _debug:
        print(f"{PREFIX} DEBUG: {msg}", file=sys.stderr)


def log_info(msg):
    print(f"{PREFIX} {msg}", file=sys.stderr)


def log_warn(msg):
    # Always shown, even without --debug
    print(f"{PREFIX} WARN: {msg}", file=sys.stderr)


def log_error(msg):
    print(f"{PREFIX} ERROR: {msg}", file=sys.stderr)
