import datetime as dt
import sys

import pytest

from gemini_export.errors import RenderDependencyMissing, UnsupportedFormat
from gemini_export.exporters import resolve_format
from gemini_export.exporters.csv_export import export_csv
from gemini_export.exporters.markdown import export_markdown
from gemini_export.exporters.pdf import export_pdf, split_segments
from gemini_export.models import Report, Role, Transcript, Turn

NOW = dt.datetime(2026, 1, 2, 3, 4, 5)


@pytest.fixture
def demo():
    return Transcript(title="Demo", turns=[
        Turn(Role.USER, "Hello"),
        Turn(Role.ASSISTANT, "Hi there\n```python\nprint(1)\n```"),
    ])


def test_markdown_demo_transcript(demo):
    text = export_markdown(demo, now=NOW).decode("utf-8")
    lines = text.split("\n")

    assert lines[0] == "# Demo"
    assert "*Exported on 2026-01-02 03:04:05 | 2 messages*" in lines
    for expected in ("## You", "> Hello", "## Gemini", "```python", "print(1)"):
        assert expected in lines
    assert "```python\nprint(1)\n```" in text


def test_markdown_quotes_every_user_line_and_appends_report():
    transcript = Transcript(
        title="Notes",
        turns=[Turn(Role.USER, "line one\nline two", timestamp="09:15")],
        report=Report("Solar Study", "Body of the report"),
    )
    text = export_markdown(transcript, now=NOW).decode("utf-8")

    assert "## You (09:15)\n\n> line one\n> line two\n" in text
    assert text.rstrip().endswith("# Deep Research Report: Solar Study\n\nBody of the report")


def test_csv_header_bom_and_bare_fields(demo):
    data = export_csv(demo)
    assert data.startswith(b"\xef\xbb\xbf")

    text = data.decode("utf-8-sig")
    assert text.startswith("Turn,Role,Content,Timestamp\r\n")
    assert "1,You,Hello,\r\n" in text


def test_csv_quotes_only_when_needed():
    transcript = Transcript(title="T", turns=[
        Turn(Role.USER, 'He said "hi", then left'),
        Turn(Role.ASSISTANT, "two\nlines", timestamp="noon"),
        Turn(Role.USER, "carriage\rreturn"),
    ])
    text = export_csv(transcript).decode("utf-8-sig")

    assert '1,You,"He said ""hi"", then left",\r\n' in text
    assert '2,Gemini,"two\nlines",noon\r\n' in text
    assert '3,You,"carriage\rreturn",' in text


def test_csv_report_row():
    transcript = Transcript(title="T", turns=[Turn(Role.USER, "q")], report=Report("R", "Findings, in short"))
    text = export_csv(transcript).decode("utf-8-sig")
    assert '2,Deep Research Report,"Findings, in short",\r\n' in text


def test_split_segments():
    segments = split_segments("Hi there\n```python\nprint(1)\n```\nBye")
    assert segments == [
        ("text", "Hi there\n", ""),
        ("code", "print(1)\n", "python"),
        ("text", "\nBye", ""),
    ]


def test_pdf_is_produced(demo):
    pytest.importorskip("reportlab")
    data = export_pdf(demo, now=NOW)
    assert data.startswith(b"%PDF")


def test_pdf_paginates_long_transcripts():
    pytest.importorskip("reportlab")
    from gemini_export.exporters.pdf import layout_pdf

    paragraph = "Lorem ipsum dolor sit amet, consectetur adipiscing elit. " * 20
    code = "\n".join(f"line_{i} = {i}" for i in range(120))
    transcript = Transcript(
        title="Long chat",
        turns=[Turn(Role.USER, paragraph), Turn(Role.ASSISTANT, f"Here:\n```python\n{code}\n```")] * 3,
        report=Report("Report", paragraph),
    )
    short = layout_pdf(Transcript(title="Short", turns=[Turn(Role.USER, "hi")]), now=NOW)
    long = layout_pdf(transcript, now=NOW)

    assert short.page == 2
    assert long.page > 6


def test_pdf_wrap_keeps_width_blank_lines_and_indent():
    pytest.importorskip("reportlab")
    from reportlab.lib.units import mm
    from reportlab.pdfbase.pdfmetrics import stringWidth
    from reportlab.pdfgen.canvas import Canvas

    from gemini_export.exporters.pdf import CONTENT_WIDTH, PdfLayout

    doc = PdfLayout(Canvas, stringWidth, mm)
    doc.set_font("Courier", 10)
    lines = doc.wrap("def f():\n\n    return " + "x" * 400, CONTENT_WIDTH)

    assert lines[:3] == ["def f():", "", "    return"]
    assert all(stringWidth(l, "Courier", 10) <= CONTENT_WIDTH * mm for l in lines)
    assert "".join(lines[3:]) == "x" * 400


def test_pdf_reports_missing_engine(monkeypatch, demo):
    monkeypatch.setitem(sys.modules, "reportlab.pdfgen.canvas", None)
    with pytest.raises(RenderDependencyMissing) as exc:
        export_pdf(demo, now=NOW)
    assert "reportlab" in exc.value.user_message


@pytest.mark.parametrize("name, expected", [
    ("pdf", "pdf"), ("document", "pdf"), ("Markdown", "markdown"),
    ("md", "markdown"), ("csv", "csv"), ("delimited-text", "csv"),
])
def test_resolve_format(name, expected):
    assert resolve_format(name).name == expected


def test_resolve_unknown_format():
    with pytest.raises(UnsupportedFormat) as exc:
        resolve_format("docx")
    assert '"docx"' in exc.value.user_message
