"""Minimal document node used by the renderer.

The renderer only needs kind, tag, attributes, children and text, so it is
written against :class:`Node` rather than a live page or a parser's tree.
:func:`from_soup` converts a BeautifulSoup subtree into nodes.
"""

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

TEXT = "text"
ELEMENT = "element"

# NavigableString subclasses that never carry visible text
_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


class Node:
    __slots__ = ("kind", "tag", "attrs", "children", "text")

    def __init__(self, kind, tag="", attrs=None, children=None, text=""):
        self.kind = kind
        self.tag = tag
        self.attrs = attrs or {}
        self.children = children or []
        self.text = text

    def __repr__(self):
        if self.kind == TEXT:
            return f"Node(text={self.text!r})"
        return f"Node(<{self.tag}> {len(self.children)} children)"

    @property
    def is_text(self) -> bool:
        return self.kind == TEXT

    @property
    def classes(self) -> list[str]:
        value = self.attrs.get("class", [])
        if isinstance(value, str):
            return value.split()
        return list(value)

    def get(self, name, default=None):
        return self.attrs.get(name, default)

    def element_children(self):
        return [c for c in self.children if c.kind == ELEMENT]

    def text_content(self) -> str:
        if self.kind == TEXT:
            return self.text
        return "".join(c.text_content() for c in self.children)

    def iter_descendants(self):
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def find(self, *tags):
        """First descendant element whose tag is one of ``tags``."""
        for node in self.iter_descendants():
            if node.kind == ELEMENT and node.tag in tags:
                return node
        return None

    def find_class(self, name):
        for node in self.iter_descendants():
            if node.kind == ELEMENT and name in node.classes:
                return node
        return None

    def find_all(self, *tags):
        return [n for n in self.iter_descendants() if n.kind == ELEMENT and n.tag in tags]


def text(value: str) -> Node:
    return Node(TEXT, text=value)


def element(tag: str, *children, **attrs) -> Node:
    """Build an element node; ``class_`` and ``data_x`` map to ``class`` and ``data-x``."""
    fixed = {}
    for k, v in attrs.items():
        k = k.rstrip("_").replace("_", "-")
        fixed[k] = v.split() if k == "class" and isinstance(v, str) else v
    kids = [text(c) if isinstance(c, str) else c for c in children]
    return Node(ELEMENT, tag=tag.lower(), attrs=fixed, children=kids)


def from_soup(el) -> Node:
    """Convert a BeautifulSoup tag (or string) into a :class:`Node` tree."""
    if isinstance(el, NavigableString):
        return Node(TEXT, text=str(el))
    if isinstance(el, BeautifulSoup):
        tag = "#document"
    elif isinstance(el, Tag):
        tag = el.name.lower()
    else:
        raise TypeError(f"Cannot convert {type(el).__name__} to Node")

    children = []
    for child in el.children:
        if isinstance(child, _SKIPPED_STRINGS):
            continue
        if isinstance(child, (Tag, NavigableString)):
            children.append(from_soup(child))
    return Node(ELEMENT, tag=tag, attrs=dict(el.attrs), children=children)


def parse_html(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, "html.parser")
    for comment in soup.find_all(string=lambda t: isinstance(t, Comment)):
        comment.extract()
    return soup
