"""CSV export (UTF-8 with BOM so spreadsheet apps pick the right encoding)."""

import csv
import datetime as dt
import io

from ..models import Transcript

BOM = "\ufeff"
HEADER = ("Turn", "Role", "Content", "Timestamp")
REPORT_ROLE = "Deep Research Report"


def to_csv(transcript: Transcript) -> str:
    buf = io.StringIO()
    # Minimal quoting with a CRLF terminator quotes exactly the fields holding '"', ',', '\n' or '\r'
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(HEADER)
    for i, turn in enumerate(transcript.turns, 1):
        writer.writerow((i, turn.role.label, turn.content, turn.timestamp or ""))

    if transcript.report:
        writer.writerow((transcript.turn_count + 1, REPORT_ROLE, transcript.report.content, ""))

    return BOM + buf.getvalue()


def export_csv(transcript: Transcript, now: dt.datetime = None, time_format: str = None) -> bytes:
    return to_csv(transcript).encode("utf-8")
