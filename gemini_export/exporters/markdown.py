"""Markdown export."""

import datetime as dt

from ..models import Role, Transcript

DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_markdown(transcript: Transcript, now: dt.datetime = None, time_format: str = DISPLAY_TIME_FORMAT) -> str:
    now = now or dt.datetime.now()
    lines = [
        f"# {transcript.title}", "",
        f"*Exported on {now.strftime(time_format)} | {transcript.turn_count} messages*", "",
        "---", "",
    ]

    for turn in transcript.turns:
        timestamp = f" ({turn.timestamp})" if turn.timestamp else ""
        lines.append(f"## {turn.role.label}{timestamp}")
        lines.append("")
        if turn.role is Role.USER:
            # User messages as block quotes, one marker per line
            lines.extend(f"> {l}" for l in turn.content.split("\n"))
        else:
            # Assistant content already carries its own code fences
            lines.append(turn.content)
        lines.append("")

    if transcript.report:
        lines += ["---", "", f"# Deep Research Report: {transcript.report.title}", ""]
        lines += [transcript.report.content, ""]

    return "\n".join(lines)


def export_markdown(transcript: Transcript, now: dt.datetime = None, time_format: str = DISPLAY_TIME_FORMAT) -> bytes:
    return to_markdown(transcript, now, time_format).encode("utf-8")
