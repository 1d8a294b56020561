"""Sources of the chat page.

A host exposes the scrollable chat history to the converger and hands the
assembler a parsed snapshot once the history is materialized.
"""

import re
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path

import pyperclip
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from .config import get_config_paths
from .dom import parse_html
from .errors import ContainerNotFound, ExportError
from .log import log_debug, log_info


class ScrollHost(ABC):
    @abstractmethod
    async def locate(self):
        """Resolve the scrollable chat history; raise ContainerNotFound if absent."""

    @abstractmethod
    async def count_turns(self) -> int: ...

    @abstractmethod
    async def get_scroll_offset(self) -> float: ...

    @abstractmethod
    async def set_scroll_offset(self, value: float): ...

    async def scroll_to_top(self):
        await self.set_scroll_offset(0)

    @abstractmethod
    async def snapshot(self):
        """Return the current page as a BeautifulSoup document."""


class StaticHost(ScrollHost):
    """An already-materialized page: a saved HTML file or clipboard HTML."""

    def __init__(self, html: str, settings):
        self.soup = parse_html(html)
        self.selectors = settings.selectors
        self.offset = 0

    @classmethod
    def from_file(cls, path: Path, settings) -> "StaticHost":
        return cls(Path(path).read_text(encoding="utf-8", errors="replace"), settings)

    async def locate(self):
        if self.soup.select_one(self.selectors["scroller"]) is None:
            raise ContainerNotFound()

    async def count_turns(self) -> int:
        return len(self.soup.select(f'{self.selectors["scroller"]} {self.selectors["turn_container"]}'))

    async def get_scroll_offset(self) -> float:
        return self.offset

    async def set_scroll_offset(self, value: float):
        self.offset = value

    async def snapshot(self):
        return self.soup


class PlaywrightHost(ScrollHost):
    """A live Gemini tab driven through Playwright."""

    def __init__(self, page, settings):
        self.page = page
        self.selectors = settings.selectors
        self.timeout = int(settings.browser.get("timeout", 30000))

    async def locate(self):
        try:
            await self.page.wait_for_selector(self.selectors["scroller"], timeout=self.timeout)
        except PlaywrightTimeoutError:
            raise ContainerNotFound()

    async def count_turns(self) -> int:
        sel = f'{self.selectors["scroller"]} {self.selectors["turn_container"]}'
        return await self.page.locator(sel).count()

    async def get_scroll_offset(self) -> float:
        return await self.page.eval_on_selector(self.selectors["scroller"], "el => el.scrollTop")

    async def set_scroll_offset(self, value: float):
        await self.page.eval_on_selector(
            self.selectors["scroller"], "(el, v) => { el.scrollTop = v; }", value)

    async def snapshot(self):
        html = await self.page.content()
        log_debug(f"Page HTML size: {len(html):,} bytes")
        return parse_html(html)


@asynccontextmanager
async def open_browser(settings, url=None, cdp_endpoint=None, profile_dir=None, headless=None):
    """Yield a PlaywrightHost for a Gemini tab.

    With a CDP endpoint the tool attaches to a running Chrome and leaves it
    open; otherwise it launches a persistent profile so the Google login is
    kept between runs.
    """
    opts = settings.browser
    url = url or opts.get("url")
    cdp_endpoint = cdp_endpoint or opts.get("cdp_endpoint")
    profile_dir = profile_dir or opts.get("profile_dir") or str(get_config_paths()["appdata_dir"] / "browser_profile")
    headless = opts.get("headless", False) if headless is None else headless
    timeout = int(opts.get("timeout", 30000))

    async with async_playwright() as p:
        context = None
        try:
            if cdp_endpoint:
                log_info(f"Attaching to browser at {cdp_endpoint}")
                browser = await p.chromium.connect_over_cdp(cdp_endpoint)
                pages = [pg for b in browser.contexts for pg in b.pages]
                page = next((pg for pg in pages if "gemini.google.com" in pg.url), None)
                if page is None:
                    ctx = browser.contexts[0] if browser.contexts else await browser.new_context()
                    page = await ctx.new_page()
            else:
                log_info(f"Launching browser with profile {profile_dir}")
                Path(profile_dir).mkdir(parents=True, exist_ok=True)
                context = await p.chromium.launch_persistent_context(profile_dir, headless=headless)
                page = context.pages[0] if context.pages else await context.new_page()

            if url and not page.url.startswith(url):
                log_info(f"Loading {url}")
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except PlaywrightError as e:
            if context is not None:
                await context.close()
            raise ExportError(f"Could not open the browser: {e}")

        try:
            yield PlaywrightHost(page, settings)
        finally:
            if context is not None:
                await context.close()


def read_clipboard_html() -> str:
    """Clipboard text, narrowed to the copied fragment when it carries Windows HTML markers."""
    raw = pyperclip.paste() or ""
    if "StartFragment:" in raw:
        match = re.search(r'<!--StartFragment-->(.*)<!--EndFragment-->', raw, re.DOTALL)
        if match: return match.group(1)
    return raw
