"""Node tree construction using stdlib ``html.parser``.

``TreeBuilder`` is an ``HTMLParser`` subclass that turns the parser's
start/end/data events into a small ``Element`` / ``Text`` / ``Comment``
tree, repairing the usual email-markup sloppiness on the way:

- void elements (``br``, ``img``, ...) never receive children
- an open ``p``/``li``/``td``/... is closed by the next sibling of its kind
- end tags with no matching open element are ignored
- anything still open at end of input is closed implicitly

Entity references are kept verbatim in text nodes so the walker can run
them through :func:`mailtext.entities.decode_entities`.  An ``&`` that does
not open a complete ``&name;``, ``&#NNN;`` or ``&#xHHHH;`` reference is
escaped to ``&amp;`` before parsing and so comes back out as itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Union

from mailtext.errors import ParseUnavailableError

_BARE_AMPERSAND_RE = re.compile(r"&(?!(?:[A-Za-z][A-Za-z0-9]*|#[0-9]+|#[xX][0-9a-fA-F]+);)")

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# tag -> (tags it implicitly closes, tags that stop the search)
_IMPLICIT_CLOSE: dict[str, tuple[frozenset[str], frozenset[str]]] = {
    "p": (frozenset({"p"}), frozenset({"div", "td", "th", "li", "blockquote", "body"})),
    "li": (frozenset({"li"}), frozenset({"ul", "ol", "menu"})),
    "dt": (frozenset({"dt", "dd"}), frozenset({"dl"})),
    "dd": (frozenset({"dt", "dd"}), frozenset({"dl"})),
    "tr": (frozenset({"tr"}), frozenset({"table", "thead", "tbody", "tfoot"})),
    "td": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "th": (frozenset({"td", "th"}), frozenset({"tr", "table"})),
    "option": (frozenset({"option"}), frozenset({"select", "datalist", "optgroup"})),
}

# Block-level starts close an open paragraph, as browsers do.
_CLOSES_PARAGRAPH = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "div",
        "dl",
        "fieldset",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "main",
        "nav",
        "ol",
        "pre",
        "section",
        "table",
        "ul",
    }
)


@dataclass
class Text:
    """A run of character data, entities still encoded."""

    content: str


@dataclass
class Comment:
    """An HTML comment; kept in the tree, never emitted."""

    content: str


@dataclass
class Element:
    """A markup element with lower-case tag and attribute names."""

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def iter_elements(self):
        """Yield this element and every descendant element, depth first."""
        stack: list[Element] = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(
                child for child in reversed(element.children) if isinstance(child, Element)
            )


Node = Union[Element, Text, Comment]


class TreeBuilder(HTMLParser):
    """HTMLParser subclass that collects a node tree from HTML."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.root = Element("#document")
        self._stack: list[Element] = [self.root]

    # -- tree helpers --------------------------------------------------

    @property
    def _current(self) -> Element:
        return self._stack[-1]

    def _append_text(self, data: str) -> None:
        children = self._current.children
        if children and isinstance(children[-1], Text):
            children[-1].content += data
        else:
            children.append(Text(data))

    def _close_implicit(self, tag: str) -> None:
        if tag in _CLOSES_PARAGRAPH and self._current.tag == "p":
            self._stack.pop()
        rule = _IMPLICIT_CLOSE.get(tag)
        if rule is None:
            return
        closes, barriers = rule
        for index in range(len(self._stack) - 1, 0, -1):
            open_tag = self._stack[index].tag
            if open_tag in barriers:
                return
            if open_tag in closes:
                del self._stack[index:]
                return

    # -- HTMLParser events ---------------------------------------------

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._close_implicit(tag)
        element = Element(tag, {name: value or "" for name, value in attrs})
        self._current.children.append(element)
        if tag not in VOID_ELEMENTS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._close_implicit(tag)
        element = Element(tag, {name: value or "" for name, value in attrs})
        self._current.children.append(element)

    def handle_endtag(self, tag: str) -> None:
        for index in range(len(self._stack) - 1, 0, -1):
            if self._stack[index].tag == tag:
                del self._stack[index:]
                return

    def handle_data(self, data: str) -> None:
        self._append_text(data)

    def handle_entityref(self, name: str) -> None:
        self._append_text(f"&{name};")

    def handle_charref(self, name: str) -> None:
        self._append_text(f"&#{name};")

    def handle_comment(self, data: str) -> None:
        self._current.children.append(Comment(data))


def parse_html(markup: str) -> Element:
    """Parse *markup* into a node tree rooted at a ``#document`` element.

    Raises
    ------
    ParseUnavailableError
        If the parser fails on the input.
    """
    builder = TreeBuilder()
    try:
        builder.feed(_BARE_AMPERSAND_RE.sub("&amp;", markup))
        builder.close()
    except Exception as exc:
        raise ParseUnavailableError(f"HTML parser failed: {exc!r}") from exc
    return builder.root


def find_body(root: Element) -> Element:
    """Return the first ``<body>`` element, or *root* when there is none."""
    for element in root.iter_elements():
        if element.tag == "body":
            return element
    return root
