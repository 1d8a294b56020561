"""PDF export.

Layout is done by hand on a reportlab canvas in millimetres, measured from
the top of an A4 page. Every line advances ``y``; when the next line would
pass ``BOTTOM_LIMIT`` the page gets its number footer and a new page starts
at the top margin.
"""

import datetime as dt
import io
import re

from ..errors import RenderDependencyMissing
from ..models import Role, Transcript

PAGE_WIDTH = 210
PAGE_HEIGHT = 297
MARGIN = 20
CONTENT_WIDTH = PAGE_WIDTH - MARGIN * 2
BOTTOM_LIMIT = 280
FOOTER_Y = 290

TITLE_FONT_SIZE = 22
META_FONT_SIZE = 12
ROLE_FONT_SIZE = 12
MESSAGE_FONT_SIZE = 11
CODE_FONT_SIZE = 10
FOOTER_FONT_SIZE = 9
REPORT_HEADING_SIZE = 18
REPORT_TITLE_SIZE = 14
LINE_HEIGHT = 1.4
PT_TO_MM = 0.352778

TEXT_LINE = MESSAGE_FONT_SIZE * LINE_HEIGHT * PT_TO_MM
CODE_LINE = CODE_FONT_SIZE * LINE_HEIGHT * PT_TO_MM
CODE_INSET = 3
TURN_GAP = 6

USER_COLOR = (66, 133, 244)
ASSISTANT_COLOR = (51, 51, 51)
TITLE_COLOR = (26, 26, 26)
MUTED_COLOR = (120, 120, 120)
FOOTER_COLOR = (150, 150, 150)
CODE_BG_COLOR = (245, 245, 245)
REPORT_COLOR = (139, 92, 246)

SANS = "Helvetica"
SANS_BOLD = "Helvetica-Bold"
MONO = "Courier"

CODE_BLOCK_RE = re.compile(r"```(\w*)\n?(.*?)```", re.DOTALL)


def split_segments(content: str) -> list[tuple]:
    """Split content into ("text", body, "") and ("code", body, lang) pieces."""
    segments = []
    last = 0
    for m in CODE_BLOCK_RE.finditer(content):
        if m.start() > last:
            segments.append(("text", content[last:m.start()], ""))
        segments.append(("code", m.group(2), m.group(1)))
        last = m.end()
    if last < len(content):
        segments.append(("text", content[last:], ""))
    return segments


class PdfLayout:
    def __init__(self, canvas_cls, string_width, mm, title=""):
        self.mm = mm
        self.string_width = string_width
        self.buf = io.BytesIO()
        self.c = canvas_cls(self.buf, pagesize=(PAGE_WIDTH * mm, PAGE_HEIGHT * mm), invariant=1)
        self.c.setTitle(title)
        self.c.setCreator("Gemini Chat Exporter")
        self.page = 1
        self.y = MARGIN
        self.font = (SANS, MESSAGE_FONT_SIZE)
        self.color = ASSISTANT_COLOR

    # --- style ---

    def set_font(self, name, size):
        self.font = (name, size)
        self.c.setFont(name, size)

    def set_color(self, rgb):
        self.color = rgb
        self.c.setFillColorRGB(*(v / 255 for v in rgb))

    def _restore_style(self):
        # showPage() resets the canvas graphics state
        self.set_font(*self.font)
        self.set_color(self.color)

    # --- drawing (top-origin millimetres) ---

    def text(self, s, x, y, align="left"):
        px, py = x * self.mm, (PAGE_HEIGHT - y) * self.mm
        if align == "center":
            self.c.drawCentredString(px, py, s)
        else:
            self.c.drawString(px, py, s)

    def rect(self, x, top, width, height, rgb):
        saved = self.color
        self.set_color(rgb)
        self.c.rect(x * self.mm, (PAGE_HEIGHT - top - height) * self.mm,
                    width * self.mm, height * self.mm, stroke=0, fill=1)
        self.set_color(saved)

    def wrap(self, text, width):
        """Wrap to ``width`` mm in the current font, keeping blank lines and indentation."""
        name, size = self.font
        limit = width * self.mm
        fits = lambda s: self.string_width(s, name, size) <= limit
        out = []
        for raw in text.split("\n"):
            line = raw.rstrip()
            if fits(line):
                out.append(line)
                continue
            current = ""
            for word in re.split(r"(?<=\s)", line):
                if fits(current + word):
                    current += word
                    continue
                if current.strip():
                    out.append(current.rstrip())
                    current = ""
                # Hard-break words wider than the whole line
                while not fits(word):
                    cut = max(1, int(len(word) * limit / self.string_width(word, name, size)))
                    while cut > 1 and not fits(word[:cut]):
                        cut -= 1
                    out.append(word[:cut])
                    word = word[cut:]
                current = word
            if current.strip():
                out.append(current.rstrip())
        return out

    # --- pagination ---

    def footer(self):
        saved = self.font, self.color
        self.set_font(SANS, FOOTER_FONT_SIZE)
        self.set_color(FOOTER_COLOR)
        self.text(f"Page {self.page}", PAGE_WIDTH / 2, FOOTER_Y, align="center")
        self.font, self.color = saved
        self._restore_style()

    def new_page(self):
        self.footer()
        self.c.showPage()
        self.page += 1
        self.y = MARGIN
        self._restore_style()

    def ensure_space(self, needed):
        if self.y + needed > BOTTOM_LIMIT:
            self.new_page()

    def lines(self, lines, x, spacing):
        for line in lines:
            self.ensure_space(spacing)
            self.text(line, x, self.y)
            self.y += spacing

    def finish(self) -> bytes:
        self.footer()
        self.c.showPage()
        self.c.save()
        return self.buf.getvalue()


def _title_page(doc: PdfLayout, transcript: Transcript, now: dt.datetime, time_format: str):
    doc.set_font(SANS_BOLD, TITLE_FONT_SIZE)
    doc.set_color(TITLE_COLOR)
    y = 80
    for line in doc.wrap(transcript.title, CONTENT_WIDTH):
        doc.text(line, PAGE_WIDTH / 2, y, align="center")
        y += TITLE_FONT_SIZE * 0.5

    count = f"{transcript.turn_count} messages"
    if transcript.report:
        count += " + Deep Research Report"
    doc.set_font(SANS, META_FONT_SIZE)
    doc.set_color(MUTED_COLOR)
    doc.text("Gemini Chat Export", PAGE_WIDTH / 2, y + 10, align="center")
    doc.text(now.strftime(time_format), PAGE_WIDTH / 2, y + 18, align="center")
    doc.text(count, PAGE_WIDTH / 2, y + 26, align="center")


def _code_block(doc: PdfLayout, code: str, color):
    doc.set_font(MONO, CODE_FONT_SIZE)
    doc.set_color(ASSISTANT_COLOR)
    lines = doc.wrap(code.strip("\n").replace("\t", "    "), CONTENT_WIDTH - 10)
    block_height = len(lines) * CODE_LINE + 4
    doc.ensure_space(min(block_height, BOTTOM_LIMIT - MARGIN))

    doc.y += 2
    i = 0
    while i < len(lines):
        if doc.y > BOTTOM_LIMIT:
            doc.new_page()
        # Shade only the lines that land on this page
        fit = max(1, int((BOTTOM_LIMIT - doc.y) // CODE_LINE) + 1)
        chunk = lines[i:i + fit]
        doc.rect(MARGIN, doc.y - 4, CONTENT_WIDTH, len(chunk) * CODE_LINE + 4, CODE_BG_COLOR)
        for line in chunk:
            doc.text(line, MARGIN + CODE_INSET, doc.y)
            doc.y += CODE_LINE
        i += len(chunk)
    doc.y += 2

    doc.set_font(SANS, MESSAGE_FONT_SIZE)
    doc.set_color(color)


def _content(doc: PdfLayout, content: str, color):
    doc.set_font(SANS, MESSAGE_FONT_SIZE)
    doc.set_color(color)
    for kind, body, _lang in split_segments(content.replace("\r", "")):
        if kind == "code":
            if body.strip():
                _code_block(doc, body, color)
            continue
        body = body.strip()
        if body:
            doc.lines(doc.wrap(body.replace("\t", "    "), CONTENT_WIDTH), MARGIN, TEXT_LINE)


def layout_pdf(transcript: Transcript, now: dt.datetime = None, time_format: str = "%Y-%m-%d %H:%M:%S") -> PdfLayout:
    """Lay out every page of the transcript. The caller finishes the document."""
    try:
        from reportlab.lib.units import mm
        from reportlab.pdfbase.pdfmetrics import stringWidth
        from reportlab.pdfgen.canvas import Canvas
    except ImportError:
        raise RenderDependencyMissing("PDF", "reportlab")

    now = now or dt.datetime.now()
    doc = PdfLayout(Canvas, stringWidth, mm, title=transcript.title)

    _title_page(doc, transcript, now, time_format)
    doc.new_page()

    for turn in transcript.turns:
        is_user = turn.role is Role.USER
        color = USER_COLOR if is_user else ASSISTANT_COLOR
        label = f"{turn.role.label}:"
        if turn.timestamp:
            label += f"  [{turn.timestamp}]"

        doc.ensure_space(TEXT_LINE * 3)
        doc.set_font(SANS_BOLD, ROLE_FONT_SIZE)
        doc.set_color(color)
        doc.text(label, MARGIN, doc.y)
        doc.y += TEXT_LINE + 2

        _content(doc, turn.content, color)
        doc.y += TURN_GAP

    if transcript.report:
        doc.new_page()
        doc.set_font(SANS_BOLD, REPORT_HEADING_SIZE)
        doc.set_color(REPORT_COLOR)
        doc.text("Deep Research Report", MARGIN, doc.y)
        doc.y += 10
        doc.set_font(SANS_BOLD, REPORT_TITLE_SIZE)
        doc.set_color(TITLE_COLOR)
        for line in doc.wrap(transcript.report.title, CONTENT_WIDTH):
            doc.text(line, MARGIN, doc.y)
            doc.y += 7
        doc.y += 4
        _content(doc, transcript.report.content, ASSISTANT_COLOR)

    return doc


def to_pdf(transcript: Transcript, now: dt.datetime = None, time_format: str = "%Y-%m-%d %H:%M:%S") -> bytes:
    return layout_pdf(transcript, now, time_format).finish()


def export_pdf(transcript: Transcript, now: dt.datetime = None, time_format: str = "%Y-%m-%d %H:%M:%S") -> bytes:
    return to_pdf(transcript, now, time_format)
