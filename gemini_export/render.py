"""Convert a document subtree into linear Markdown text.

``render`` walks a :class:`~gemini_export.dom.Node` tree and is a pure
function of it: no state survives between calls, so the same tree always
gives the same string.
"""

import re

from .config import DEFAULTS
from .dom import ELEMENT, Node

BLOCK_TAGS = {
    "p", "div", "section", "article", "header", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "br", "hr",
}

# Never content: page plumbing and icon/button chrome
SKIP_TAGS = {"script", "style", "noscript", "template", "svg", "button", "mat-icon"}

CODE_BLOCK_TAGS = ("pre", "code-block")

LANG_CLASS_RE = re.compile(r"^(?:language|lang)-(\w[\w+#-]*)$")
HEADING_RE = re.compile(r"^h([1-6])$")
FENCE_SPLIT_RE = re.compile(r"(```[^\n]*\n.*?\n```)", re.DOTALL)

MAX_LABEL_LEN = 30


def clean_markdown(text: str) -> str:
    """Blank whitespace-only lines and collapse runs of blank lines, leaving fenced code alone."""
    pieces = FENCE_SPLIT_RE.split(text)
    for i in range(0, len(pieces), 2):
        seg = re.sub(r"^[ \t]+$", "", pieces[i], flags=re.M)
        pieces[i] = re.sub(r"\n{3,}", "\n\n", seg)
    return "".join(pieces).strip()


class SemanticTextRenderer:
    def __init__(self, hidden_classes=None, control_ids=None, languages=None, image_placeholder=None):
        opts = DEFAULTS["render"]
        self.hidden_classes = set(hidden_classes if hidden_classes is not None else opts["hidden_classes"])
        self.control_ids = set(control_ids if control_ids is not None else opts["control_ids"])
        self.languages = {l.lower() for l in (languages if languages is not None else opts["languages"])}
        self.image_placeholder = image_placeholder or opts["image_placeholder"]

    @classmethod
    def from_settings(cls, settings) -> "SemanticTextRenderer":
        opts = settings.render
        return cls(
            hidden_classes=opts.get("hidden_classes"),
            control_ids=opts.get("control_ids"),
            languages=opts.get("languages"),
            image_placeholder=opts.get("image_placeholder"),
        )

    def render(self, node: Node) -> str:
        if node is None:
            return ""
        parts: list[str] = []
        self._walk(node, parts, None)
        return clean_markdown("".join(parts))

    # --- traversal ---

    def _is_skipped(self, node: Node) -> bool:
        if node.tag in SKIP_TAGS:
            return True
        if node.get("id") in self.control_ids:
            return True
        return any(c in self.hidden_classes for c in node.classes)

    def _walk_children(self, node: Node, parts: list):
        previous = None
        for child in node.children:
            self._walk(child, parts, previous)
            if child.kind == ELEMENT or child.text.strip():
                previous = child

    def _render_inline(self, node: Node) -> str:
        parts: list[str] = []
        self._walk_children(node, parts)
        return "".join(parts)

    def _walk(self, node: Node, parts: list, previous):
        if node.is_text:
            parts.append(node.text)
            return
        if self._is_skipped(node):
            return

        tag = node.tag

        # Code blocks return without recursing, so inline code below is never inside one
        if tag in CODE_BLOCK_TAGS:
            lang = self.detect_language(node, previous)
            code_el = node.find("code") or node.find_class("code-container") or node
            parts.append(f"\n```{lang}\n{code_el.text_content().strip()}\n```\n")
            return
        if tag == "code":
            parts.append("`" + node.text_content() + "`")
            return
        if tag == "img":
            parts.append(self.image_placeholder)
            return

        if tag in ("ul", "ol"):
            self._render_list(node, parts)
            return
        if tag == "li":
            self._walk_children(node, parts)
            return
        if tag == "table":
            self._render_table(node, parts)
            return

        if tag in ("strong", "b"):
            parts.append("**"); self._walk_children(node, parts); parts.append("**")
            return
        if tag in ("em", "i"):
            parts.append("*"); self._walk_children(node, parts); parts.append("*")
            return
        if tag == "br":
            parts.append("\n")
            return
        if tag == "hr":
            parts.append("\n---\n")
            return

        m = HEADING_RE.match(tag)
        if m:
            parts.append("\n" + "#" * int(m.group(1)) + " ")
            self._walk_children(node, parts)
            parts.append("\n")
            return
        if tag == "blockquote":
            parts.append("\n> ")
            self._walk_children(node, parts)
            parts.append("\n")
            return

        is_block = tag in BLOCK_TAGS
        if is_block: parts.append("\n")
        self._walk_children(node, parts)
        if is_block: parts.append("\n")

    # --- structures ---

    def _render_list(self, node: Node, parts: list):
        ordered = node.tag == "ol"
        parts.append("\n")
        items = [c for c in node.element_children() if c.tag == "li"]
        for i, li in enumerate(items, 1):
            prefix = f"{i}. " if ordered else "- "
            body = re.sub(r"\n\s*\n", "\n", self._render_inline(li).strip())
            # Continuation lines (nested lists) are indented under the marker
            body = body.replace("\n", "\n" + " " * len(prefix))
            parts.append(prefix + body + "\n")

    def _render_table(self, node: Node, parts: list):
        rows = node.find_all("tr")
        if not rows:
            return
        lines = []
        for ri, row in enumerate(rows):
            cells = [c for c in row.element_children() if c.tag in ("th", "td")]
            texts = [" ".join(c.text_content().split()) for c in cells]
            lines.append("| " + " | ".join(texts) + " |")
            if ri == 0 and any(c.tag == "th" for c in cells):
                lines.append("| " + " | ".join("---" for _ in cells) + " |")
        parts.append("\n" + "\n".join(lines) + "\n")

    # --- code language ---

    def detect_language(self, block: Node, previous: Node = None) -> str:
        """Resolve a fence tag: class token, then data attribute, then a known label line."""
        code = block.find("code")
        candidates = [block] + ([code] if code is not None else [])

        for el in candidates:
            for token in el.classes:
                m = LANG_CLASS_RE.match(token)
                if m: return m.group(1).lower()
        for el in candidates:
            hint = el.get("data-language") or el.get("data-lang")
            if hint: return str(hint).strip().lower()

        labels = []
        if block.tag == "code-block":
            # Gemini puts the language name in a header above the code
            dec = block.find_class("code-block-decoration")
            if dec is not None:
                span = next((s for s in dec.find_all("span") if s.text_content().strip()), None)
                labels.append((span or dec).text_content())
        if previous is not None:
            if previous.is_text:
                # Bare text before the block: only its last line can be a label
                lines = [l for l in previous.text.splitlines() if l.strip()]
                labels.append(lines[-1] if lines else "")
            elif not self._is_skipped(previous):
                labels.append(previous.text_content())

        for label in labels:
            lang = self._match_language(label)
            if lang: return lang
        return ""

    def _match_language(self, label: str) -> str:
        label = " ".join(label.split())
        if 0 < len(label) < MAX_LABEL_LEN and label.lower() in self.languages:
            return label.lower()
        return ""


_default_renderer = None


def render(node: Node) -> str:
    """Render with the built-in defaults."""
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = SemanticTextRenderer()
    return _default_renderer.render(node)
