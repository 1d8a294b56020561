"""Export entry point.

``export`` runs the whole pipeline for one request and never raises: every
failure comes back as an ``ExportResult`` with a short message fit for the
user.
"""

import datetime as dt
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pyperclip

from .assembler import TranscriptAssembler
from .config import Settings
from .converger import ConvergenceResult, HistoryConverger
from .errors import EmptyTranscript, ExportError, UnsupportedFormat
from .exporters import resolve_format
from .log import log_error, log_info, log_warn
from .models import Transcript
from .progress import DONE


@dataclass
class ExportResult:
    success: bool
    format: str = ""
    byte_count: int = 0
    payload: Optional[bytes] = None
    error: Optional[str] = None
    transcript: Optional[Transcript] = None
    convergence: Optional[ConvergenceResult] = None

    @classmethod
    def failure(cls, error: str, fmt: str = "", **kwargs) -> "ExportResult":
        return cls(False, format=fmt, error=error, **kwargs)


async def collect_transcript(host, settings: Settings, progress=None, sleep=None):
    """Materialize the full history, assemble it, then restore the scroll position."""
    converger = HistoryConverger.from_settings(host, settings, sleep=sleep, progress=progress)
    assembler = TranscriptAssembler(settings)

    async with converger.materialized() as convergence:
        soup = await host.snapshot()
        transcript = assembler.assemble(soup)

    if progress is not None:
        progress.emit(DONE, transcript.turn_count)
    return transcript, convergence


async def export(host, fmt, settings: Settings = None, progress=None, sleep=None, now=None) -> ExportResult:
    settings = settings or Settings.from_dict()

    # Reject unknown formats before touching the page
    try:
        target = resolve_format(fmt)
    except UnsupportedFormat as e:
        log_error(e.user_message)
        return ExportResult.failure(e.user_message, str(fmt))

    log_info(f"Export requested: {target.name}")
    transcript = convergence = None
    try:
        transcript, convergence = await collect_transcript(host, settings, progress, sleep)
        if transcript.is_empty:
            raise EmptyTranscript()
        payload = target.render(transcript, now=now, time_format=settings.get("display_time_format"))
    except ExportError as e:
        log_error(f"Export failed: {e.user_message}")
        return ExportResult.failure(e.user_message, target.name, transcript=transcript, convergence=convergence)
    except Exception as e:
        log_error(f"Export error: {type(e).__name__}: {e}")
        return ExportResult.failure(f"Export failed: {e}", target.name, transcript=transcript, convergence=convergence)

    note = " + report" if transcript.report else ""
    log_info(f"Exported {transcript.turn_count} messages{note} as {target.name.upper()} ({len(payload):,} bytes)")
    return ExportResult(True, target.name, len(payload), payload, None, transcript, convergence)


class ExportController:
    """Runs one export at a time."""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings.from_dict()
        self.busy = False

    async def run(self, host, fmt, progress=None, sleep=None, now=None) -> ExportResult:
        if self.busy:
            log_warn("Export already in progress")
            if progress is not None:
                progress.close()
            return ExportResult.failure("Export already in progress", str(fmt))

        self.busy = True
        try:
            return await export(host, fmt, self.settings, progress=progress, sleep=sleep, now=now)
        finally:
            self.busy = False
            if progress is not None:
                progress.close()


def sanitize_filename(name: str) -> str:
    name = re.sub(r'[\x00-\x1f\x7f-\x9f]', "", name)
    name = re.sub(r'[<>:"/\\|?*#]', "_", name)
    name = name.replace("`", "").replace("*", "").strip()
    return name[:80] or "gemini-chat"


def resolve_output_path(settings: Settings, title: str, ext: str, now: dt.datetime = None, out_dir: Path = None) -> Path:
    now = now or dt.datetime.now()
    y_str = now.strftime(settings.get("year_format", "%Y"))
    m_str = now.strftime(settings.get("month_format", "%m"))
    d_str = now.strftime(settings.get("date_format", "%Y%m%d"))
    time_str = now.strftime(settings.get("time_format", "%Y%m%d_%H%M%S"))

    def expand(tmpl):
        return tmpl.replace("{year}", y_str).replace("{month}", m_str).replace("{date}", d_str)

    out_cfg = settings.output
    directory = Path(out_dir) if out_dir else Path(expand(out_cfg.get("dir", ".")))
    filename = expand(out_cfg.get("filename", "{title}_{time}.{ext}"))
    filename = filename.replace("{time}", time_str).replace("{title}", sanitize_filename(title)).replace("{ext}", ext)
    return directory / filename


def save_payload(result: ExportResult, settings: Settings, now: dt.datetime = None, out_dir: Path = None) -> Path:
    ext = resolve_format(result.format).extension
    title = result.transcript.title if result.transcript else "gemini-chat"
    path = resolve_output_path(settings, title, ext, now=now, out_dir=out_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(result.payload)
    log_info(f"Saved to: {path}")
    return path


def copy_to_clipboard(result: ExportResult) -> bool:
    """Copy a Markdown export to the clipboard; other formats are binary or tabular."""
    if result.format != "markdown" or not result.payload:
        return False
    try:
        pyperclip.copy(result.payload.decode("utf-8"))
    except pyperclip.PyperclipException as e:
        log_warn(f"Error copying to clipboard: {e}")
        return False
    log_info("Markdown result has been copied to clipboard.")
    return True
