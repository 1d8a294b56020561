from gemini_export.dom import from_soup, parse_html
from gemini_export.errors import ContainerNotFound
from gemini_export.hosts import ScrollHost


def user_query(text):
    return (
        "<user-query><div class='query-text'>"
        "<span class='screen-reader-only'>You said</span>"
        f"<p class='query-text-line'>{text}</p>"
        "</div></user-query>"
    )


def model_response(html):
    return (
        "<model-response><message-content>"
        f"<div class='markdown'>{html}</div>"
        "</message-content></model-response>"
    )


def container(user=None, model=None):
    parts = []
    if user is not None:
        parts.append(user_query(user))
    if model is not None:
        parts.append(model_response(model))
    return f"<div class='conversation-container'>{''.join(parts)}</div>"


def gemini_page(containers, title="Trip planning - Google Gemini", extra=""):
    head = f"<head><title>{title}</title></head>" if title is not None else "<head></head>"
    return (
        f"<html>{head}<body>"
        f"<infinite-scroller class='chat-history'>{''.join(containers)}</infinite-scroller>"
        f"{extra}</body></html>"
    )


def node_from_html(html):
    return from_soup(parse_html(html))


class ScriptedHost(ScrollHost):
    """Fake chat page: each scroll to the top prepends ``growth[i]`` turns."""

    def __init__(self, initial=5, growth=(), offset=900.0, present=True, html=None):
        self.count = initial
        self.growth = list(growth)
        self.offset = offset
        self.present = present
        self.html = html or gemini_page([container("Hello", "<p>Hi</p>")])
        self.scrolls = 0
        self.calls = []

    async def locate(self):
        self.calls.append("locate")
        if not self.present:
            raise ContainerNotFound()

    async def count_turns(self):
        self.calls.append("count")
        return self.count

    async def get_scroll_offset(self):
        return self.offset

    async def set_scroll_offset(self, value):
        self.offset = value
        if value == 0:
            self.scrolls += 1
            if self.growth:
                self.count += self.growth.pop(0)
                # The page keeps the viewport in place after prepending
                self.offset = 250.0

    async def snapshot(self):
        self.calls.append("snapshot")
        return parse_html(self.html)


class SequenceHost(ScriptedHost):
    """Reports turn counts straight from a list, including dips."""

    def __init__(self, counts, **kwargs):
        super().__init__(**kwargs)
        self.counts = list(counts)

    async def count_turns(self):
        if len(self.counts) > 1:
            return self.counts.pop(0)
        return self.counts[0]


class FakeSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


