"""Build a Transcript from a materialized chat page."""

import re

from bs4 import BeautifulSoup

from .dom import from_soup
from .errors import ContainerNotFound, PerTurnExtractionError
from .log import log_debug, log_error, log_info
from .models import Report, Role, Transcript, Turn
from .render import SemanticTextRenderer

BRANDING_RE = [
    re.compile(r"[-–|]\s*Google\s*Gemini.*", re.I),
    re.compile(r"[-–|]\s*Gemini.*", re.I),
]


def deduplicate_turns(turns, prefix: int = 200) -> list[Turn]:
    """Keep the first turn for each (role, content prefix) fingerprint."""
    seen = set()
    kept = []
    for turn in turns:
        fp = turn.fingerprint(prefix)
        if fp in seen:
            continue
        seen.add(fp)
        kept.append(turn)
    return kept


def clean_title(raw: str, default: str = "Untitled Chat") -> str:
    title = raw or ""
    for pattern in BRANDING_RE:
        title = pattern.sub("", title)
    title = title.strip()
    return title if title and title.lower() not in ("gemini", "google gemini") else default


def _select_first(root, selectors):
    if isinstance(selectors, str):
        selectors = [selectors]
    for sel in selectors or []:
        el = root.select_one(sel)
        if el is not None:
            return el
    return None


class TranscriptAssembler:
    def __init__(self, settings, renderer: SemanticTextRenderer = None):
        self.selectors = settings.selectors
        self.opts = settings.extract
        self.renderer = renderer or SemanticTextRenderer.from_settings(settings)

    def render_element(self, el) -> str:
        return self.renderer.render(from_soup(el)) if el is not None else ""

    def assemble(self, soup: BeautifulSoup) -> Transcript:
        turns = self.extract_turns(soup)
        deduped = deduplicate_turns(turns, int(self.opts.get("fingerprint_prefix", 200)))
        log_info(f"Deduplicated: {len(turns)} -> {len(deduped)} messages")

        report = self.extract_report(soup)
        if report:
            log_info(f'Including Deep Research report: "{report.title}"')

        return Transcript(title=self.page_title(soup), turns=tuple(deduped), report=report)

    def page_title(self, soup: BeautifulSoup) -> str:
        title_tag = soup.find("title")
        raw = title_tag.get_text() if title_tag else ""
        return clean_title(raw, self.opts.get("default_title", "Untitled Chat"))

    # --- turns ---

    def extract_turns(self, soup: BeautifulSoup) -> list[Turn]:
        scroller = soup.select_one(self.selectors["scroller"])
        if scroller is None:
            log_error(f'No {self.selectors["scroller"]} found')
            raise ContainerNotFound()

        containers = scroller.select(self.selectors["turn_container"])
        log_info(f"Found {len(containers)} conversation containers")

        turns: list[Turn] = []
        for idx, container in enumerate(containers):
            try:
                turns.extend(self._extract_container(container))
            except Exception as e:
                err = PerTurnExtractionError(idx, e)
                log_error(str(err))
        log_info(f"Extracted {len(turns)} messages from chat")
        return turns

    def _extract_container(self, container) -> list[Turn]:
        found = []
        sides = (
            (Role.USER, self.selectors["user_query"], self.selectors.get("user_content")),
            (Role.ASSISTANT, self.selectors["model_response"], self.selectors.get("model_content")),
        )
        for role, outer_sel, inner_sels in sides:
            outer = container.select_one(outer_sel)
            if outer is None:
                continue
            el = _select_first(outer, inner_sels) or outer
            content = self.render_element(el)
            if not content.strip():
                log_debug(f"Empty {role.value} content skipped")
                continue
            found.append(Turn(role, content, self._timestamp(outer)))
        return found

    def _timestamp(self, el):
        sel = self.selectors.get("timestamp")
        if not sel:
            return None
        ts_el = el.select_one(sel)
        if ts_el is None:
            return None
        value = ts_el.get("datetime") or ts_el.get_text()
        value = " ".join(str(value).split())
        return value or None

    # --- report ---

    def extract_report(self, soup: BeautifulSoup):
        try:
            return self._extract_report(soup)
        except Exception as e:
            log_error(f"Error extracting Deep Research report: {e}")
            return None

    def _extract_report(self, soup: BeautifulSoup):
        panel = soup.select_one(self.selectors["report_panel"])
        if panel is None:
            log_debug("No deep research report found on this page")
            return None

        log_info("Deep Research report detected, extracting...")
        container = panel.select_one(self.selectors["report_container"])
        if container is None:
            log_error("Deep Research panel found but no container inside")
            return None

        content_el = _select_first(container, self.selectors.get("report_content"))
        if content_el is None:
            text = self.render_element(container)
            if len(text) > int(self.opts.get("report_fallback_min_chars", 100)):
                log_info(f"Extracted report from container fallback: {len(text)} chars")
                return Report(self.report_title(panel), text)
            return None

        text = self.render_element(content_el)
        min_chars = int(self.opts.get("report_min_chars", 50))
        if len(text) < min_chars:
            log_error(f"Report text too short ({len(text)} chars), skipping")
            return None

        title = self.report_title(panel)
        log_info(f'Extracted Deep Research report: "{title}" ({len(text)} chars)')
        return Report(title, text)

    def report_title(self, panel) -> str:
        """Toolbar title, then first heading, then the first line of the panel text."""
        default = self.opts.get("default_report_title", "Deep Research Report")

        toolbar = panel.select_one(self.selectors["report_toolbar"])
        if toolbar is not None:
            title_el = toolbar.select_one(self.selectors["report_toolbar_title"])
            if title_el is not None:
                t = title_el.get_text().strip()
                if 3 < len(t) < 200: return t

        heading = panel.select_one("h1, h2")
        if heading is not None:
            t = heading.get_text().strip()
            if 3 < len(t) < 200: return t

        text = panel.get_text().strip()
        if text:
            first_line = text.split("\n")[0].strip()
            return first_line[:int(self.opts.get("report_title_max", 80))] or default
        return default
