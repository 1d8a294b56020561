"""Command line entry point: export a Gemini conversation to PDF, Markdown or CSV."""

import argparse
import asyncio
import atexit
import os
import sys
import tempfile
import time
from pathlib import Path

from .config import load_config
from .errors import ExportError
from .exporter import ExportController, ExportResult, copy_to_clipboard, save_payload
from .exporters import ALIASES, FORMATS
from .hosts import StaticHost, open_browser, read_clipboard_html
from .log import log_debug, set_debug
from .progress import ProgressChannel, progress_text

# --- Lock ---
_LOCK_DIR = Path(tempfile.gettempdir()) / "gemini_chat_exporter"
_LOCK_FILE = _LOCK_DIR / "gemini_chat_exporter.lock"
_LOCK_MAX_AGE = 300  # seconds before a lock file is considered stale (crash recovery)


def acquire_lock() -> bool:
    """Try to acquire a process lock. Returns True if acquired, False if another export is running."""
    _LOCK_DIR.mkdir(parents=True, exist_ok=True)
    if _LOCK_FILE.exists():
        age = time.time() - _LOCK_FILE.stat().st_mtime
        if age < _LOCK_MAX_AGE:
            return False
        _LOCK_FILE.unlink(missing_ok=True)  # Stale lock (e.g. previous crash)
    _LOCK_FILE.write_text(str(os.getpid()), encoding="utf-8")
    return True


def release_lock():
    _LOCK_FILE.unlink(missing_ok=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gemini-export", description="Export a Gemini conversation with its full history.")
    parser.add_argument("-f", "--format", default="markdown", choices=sorted(set(FORMATS) | set(ALIASES)),
                        help="Output format (default: markdown).")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--html", type=Path, help="Read a saved Gemini page instead of opening a browser.")
    source.add_argument("--clipboard", action="store_true", help="Read page HTML from the clipboard.")
    source.add_argument("--url", help="Conversation URL to open in the browser.")
    parser.add_argument("--cdp", help="Attach to a running Chrome at this DevTools endpoint (e.g. http://localhost:9222).")
    parser.add_argument("--profile", help="Browser profile directory for the launched browser.")
    parser.add_argument("--headless", action="store_true", help="Launch the browser without a window.")
    parser.add_argument("--wait", type=float, default=0, help="Seconds to wait after the page opens (e.g. to sign in).")
    parser.add_argument("-o", "--out", type=Path, help="Output directory (overrides config).")
    parser.add_argument("--stdout", action="store_true", help="Write the export to stdout instead of a file.")
    parser.add_argument("--config", type=Path, help="Path to a config.yaml.")
    parser.add_argument("--debug", action="store_true", help="Show debug information.")
    return parser


async def print_progress(channel: ProgressChannel):
    async for event in channel:
        print(progress_text(event), file=sys.stderr, flush=True)


async def run_export(args, settings) -> ExportResult:
    channel = ProgressChannel()
    printer = asyncio.create_task(print_progress(channel))
    controller = ExportController(settings)
    try:
        if args.html:
            if not args.html.exists():
                return ExportResult.failure(f"HTML file not found: {args.html}", args.format)
            host = StaticHost.from_file(args.html, settings)
            return await controller.run(host, args.format, progress=channel)
        if args.clipboard:
            html = read_clipboard_html()
            if not html.strip():
                return ExportResult.failure("Clipboard is empty.", args.format)
            return await controller.run(StaticHost(html, settings), args.format, progress=channel)

        async with open_browser(settings, url=args.url, cdp_endpoint=args.cdp,
                                profile_dir=args.profile, headless=args.headless or None) as host:
            if args.wait:
                print(f"Waiting {args.wait:g}s before scanning...", file=sys.stderr, flush=True)
                await asyncio.sleep(args.wait)
            return await controller.run(host, args.format, progress=channel)
    except ExportError as e:
        return ExportResult.failure(e.user_message, args.format)
    finally:
        channel.close()
        await printer


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Fix Windows console encoding
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
        except AttributeError:
            pass

    settings = load_config(args.config)
    set_debug(args.debug or settings.debug)
    log_debug(f"Settings: {settings.data}")

    if not acquire_lock():
        print("Another export is already running. Exiting.")
        return 1
    atexit.register(release_lock)
    try:
        return _deliver(args, settings, asyncio.run(run_export(args, settings)))
    finally:
        release_lock()


def _deliver(args, settings, result: ExportResult) -> int:
    if not result.success:
        print(result.error)
        return 1

    if args.stdout:
        sys.stdout.buffer.write(result.payload)
        sys.stdout.flush()
        return 0

    print("-" * 40)
    if settings.output.get("enabled", True) or args.out:
        path = save_payload(result, settings, out_dir=args.out)
        print(f"Success! Exported {result.transcript.turn_count} messages.")
        print(f"Saved to: {path}")
    if settings.section("clip").get("enabled"):
        copy_to_clipboard(result)
    print("-" * 40)
    return 0


if __name__ == "__main__":
    sys.exit(main())
