"""Structural tree walker: node tree to structured plain text.

``walk`` visits the ``<body>`` of a parsed document once, depth first,
with an explicit stack of enter/exit events.  Per-tag decisions (line
breaks, heading markers, bullets, quote prefixes, link and image
annotations) are made on enter and exit; all mutable traversal state
lives in one ``VisitorState`` and one ``OutputBuffer`` per call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from mailtext.annotations import render_image, render_link
from mailtext.config import HtmlTextConfig
from mailtext.entities import decode_entities
from mailtext.models import MarkupDocument
from mailtext.normalize import PRE_CLOSE, PRE_OPEN
from mailtext.tree import Element, Node, Text, find_body, parse_html

SKIPPED_TAGS = frozenset(
    {
        "script",
        "style",
        "noscript",
        "iframe",
        "object",
        "embed",
        "applet",
        "head",
        "title",
        "template",
    }
)

BLOCK_TAGS = frozenset(
    {
        "p",
        "div",
        "section",
        "article",
        "header",
        "footer",
        "nav",
        "aside",
        "table",
        "main",
        "form",
        "fieldset",
        "figure",
        "address",
        "center",
        "dl",
    }
)
LIST_TAGS = frozenset({"ul", "ol", "menu"})
LINE_TAGS = frozenset({"dt", "dd", "figcaption", "caption", "legend"})
HEADING_MARKERS = {"h1": "===", "h2": "==", "h3": "=", "h4": "", "h5": "", "h6": ""}

# Tags that separate words when they appear inside an anchor's text.
_LINK_TEXT_BREAKS = (
    BLOCK_TAGS
    | LIST_TAGS
    | LINE_TAGS
    | frozenset(HEADING_MARKERS)
    | frozenset({"li", "tr", "td", "th", "hr", "pre", "blockquote"})
)

_WHITESPACE_RE = re.compile(r"[ \t\n\r\f\v]+")
_NO_SPACE_BEFORE = frozenset(" \n.,;:!?)]}")


@dataclass
class VisitorState:
    """Mutable traversal state for one ``walk`` call."""

    pre_depth: int = 0
    code_depth: int = 0
    quote_depth: int = 0
    list_depth: int = 0
    collecting_link_text: bool = False
    link_text: list[str] = field(default_factory=list)
    link_element: Element | None = None
    pre_fresh: bool = False

    @property
    def in_preformatted(self) -> bool:
        return self.pre_depth > 0

    @property
    def in_inline_code(self) -> bool:
        return self.code_depth > 0 and not self.in_preformatted


@dataclass(frozen=True)
class _Mark:
    pieces: int
    tail: str
    content_count: int


class OutputBuffer:
    """Append-only text being built by the walker.

    Tracks the last visible characters so line-break decisions never need
    to join the whole buffer, and writes ``line_prefix`` (the blockquote
    prefix) in front of every line that receives text.
    """

    def __init__(self) -> None:
        self._pieces: list[str] = []
        self._tail = ""
        self.line_prefix = ""
        self.content_count = 0
        self._needs_space = False

    # -- queries -------------------------------------------------------

    @property
    def at_line_start(self) -> bool:
        return not self._tail or self._tail[-1] == "\n"

    @property
    def last_char(self) -> str:
        return self._tail[-1:] if self._tail else ""

    def mark(self) -> _Mark:
        return _Mark(len(self._pieces), self._tail, self.content_count)

    def reset(self, mark: _Mark) -> None:
        """Drop everything written since *mark*."""
        del self._pieces[mark.pieces:]
        self._tail = mark.tail
        self.content_count = mark.content_count
        self._needs_space = False

    # -- writes --------------------------------------------------------

    def _emit(self, piece: str) -> None:
        self._pieces.append(piece)
        visible = piece.replace(PRE_OPEN, "").replace(PRE_CLOSE, "")
        if visible:
            self._tail = (self._tail + visible)[-2:]

    def fence(self, marker: str) -> None:
        """Write a preformatted fence; fences are invisible to layout checks."""
        self._emit(marker)

    def write(self, text: str, *, content: bool = False) -> None:
        if not text:
            return
        self._needs_space = False
        if self.line_prefix:
            for index, part in enumerate(text.split("\n")):
                if index:
                    self._emit("\n")
                if part:
                    if self.at_line_start:
                        self._emit(self.line_prefix)
                    self._emit(part)
        else:
            self._emit(text)
        if content and not text.isspace():
            self.content_count += 1

    def write_inline(self, text: str) -> None:
        """Write collapsed text, never doubling a space or starting a line with one."""
        if text.startswith(" ") and (self.at_line_start or self.last_char == " "):
            text = text[1:]
        if not text:
            return
        if self._needs_space and text[0] not in _NO_SPACE_BEFORE:
            text = " " + text
        self.write(text, content=True)

    def write_annotation(self, annotation: str) -> None:
        if not self.at_line_start and self.last_char not in (" ", "\t", "("):
            annotation = " " + annotation
        self.write(annotation, content=True)
        self._needs_space = True

    def start_new_line(self) -> None:
        if not self.at_line_start:
            self.write("\n")

    def add_empty_line(self) -> None:
        if not self._tail or self._tail == "\n\n":
            return
        self.start_new_line()
        self.write("\n")

    def __str__(self) -> str:
        return "".join(self._pieces)


class TreeWalker:
    """Single-use visitor turning a node tree into text."""

    def __init__(self, config: HtmlTextConfig) -> None:
        self.config = config
        self.state = VisitorState()
        self.out = OutputBuffer()
        self._marks: list[_Mark] = []

    def run(self, root: Element) -> str:
        stack: list[tuple[Node, bool]] = [(root, False)]
        while stack:
            node, exiting = stack.pop()
            if isinstance(node, Element):
                if exiting:
                    self._exit(node)
                    continue
                if node.tag in SKIPPED_TAGS:
                    continue
                self._enter(node)
                stack.append((node, True))
                stack.extend((child, False) for child in reversed(node.children))
            elif isinstance(node, Text):
                self._text(node.content)
            # Comment nodes produce nothing.
        return str(self.out)

    # -- structural helpers (suppressed while collecting link text) -----

    def _start_new_line(self) -> None:
        if not self.state.collecting_link_text:
            self.out.start_new_line()

    def _add_empty_line(self) -> None:
        if not self.state.collecting_link_text:
            self.out.add_empty_line()

    def _marker(self, text: str, *, content: bool = False) -> None:
        if not self.state.collecting_link_text:
            self.out.write(text, content=content)

    def _set_quote_prefix(self) -> None:
        self.out.line_prefix = self.config.quote_prefix * self.state.quote_depth

    # -- events --------------------------------------------------------

    def _enter(self, element: Element) -> None:
        tag = element.tag
        state = self.state
        self._marks.append(self.out.mark())
        if state.collecting_link_text and tag in _LINK_TEXT_BREAKS:
            state.link_text.append(" ")

        if tag in BLOCK_TAGS or tag in LINE_TAGS:
            self._start_new_line()
        elif tag in HEADING_MARKERS:
            self._start_new_line()
            self._add_empty_line()
            self._marks[-1] = self.out.mark()
            marker = HEADING_MARKERS[tag]
            if marker:
                self._marker(marker + " ")
        elif tag in LIST_TAGS:
            self._start_new_line()
            state.list_depth += 1
        elif tag == "li":
            self._start_new_line()
            self._marks[-1] = self.out.mark()
            self._marker(self.config.bullet)
        elif tag == "br":
            if state.collecting_link_text:
                state.link_text.append(" ")
            else:
                self.out.write("\n")
        elif tag == "hr":
            self._start_new_line()
            self._marker("---", content=True)
            self._marker("\n")
        elif tag == "pre":
            self._start_new_line()
            state.pre_depth += 1
            if state.pre_depth == 1:
                self.out.fence(PRE_OPEN)
                state.pre_fresh = True
        elif tag == "code":
            state.code_depth += 1
        elif tag == "blockquote":
            self._start_new_line()
            state.quote_depth += 1
            self._set_quote_prefix()
        elif tag == "tr":
            self._start_new_line()
        elif tag in ("td", "th"):
            if not self.out.at_line_start and not state.collecting_link_text:
                self.out.write("\t")
        elif tag == "q":
            self._text('"')
        elif tag == "a":
            href = (element.get("href") or "").strip()
            if href and not state.collecting_link_text:
                state.collecting_link_text = True
                state.link_text = []
                state.link_element = element
        elif tag == "img":
            annotation = render_image(element.get("alt"), self.config)
            if state.collecting_link_text:
                state.link_text.append(annotation)
            else:
                self.out.write_annotation(annotation)

    def _exit(self, element: Element) -> None:
        tag = element.tag
        state = self.state
        mark = self._marks.pop()
        emitted = self.out.content_count > mark.content_count

        if tag in BLOCK_TAGS:
            if emitted:
                self._add_empty_line()
        elif tag in LINE_TAGS:
            self._start_new_line()
        elif tag in HEADING_MARKERS:
            if not emitted:
                self.out.reset(mark)
                return
            marker = HEADING_MARKERS[tag]
            if marker:
                self._marker(" " + marker)
            self._add_empty_line()
        elif tag in LIST_TAGS:
            state.list_depth -= 1
            if emitted and state.list_depth == 0:
                self._add_empty_line()
            else:
                self._start_new_line()
        elif tag == "li":
            if not emitted and not state.collecting_link_text:
                self.out.reset(mark)
                return
            self._start_new_line()
        elif tag == "pre":
            if state.pre_depth == 1:
                self.out.fence(PRE_CLOSE)
            state.pre_depth -= 1
            state.pre_fresh = False
            if emitted:
                self._add_empty_line()
        elif tag == "code":
            state.code_depth -= 1
        elif tag == "blockquote":
            state.quote_depth -= 1
            self._start_new_line()
            self._set_quote_prefix()
            if emitted:
                self._add_empty_line()
        elif tag == "tr":
            self._start_new_line()
        elif tag == "q":
            self._text('"')
        elif tag == "a" and element is state.link_element:
            state.collecting_link_text = False
            state.link_element = None
            text = "".join(state.link_text)
            state.link_text = []
            self.out.write_annotation(render_link(element.get("href") or "", text, self.config))

    def _text(self, raw: str) -> None:
        state = self.state
        raw = raw.replace(PRE_OPEN, "").replace(PRE_CLOSE, "")
        text = decode_entities(raw, ascii_only=self.config.ascii_only_numeric_entities)

        if state.in_preformatted:
            if state.pre_fresh:
                state.pre_fresh = False
                if text.startswith("\n"):
                    text = text[1:]
            if state.collecting_link_text:
                state.link_text.append(text)
            else:
                self.out.write(text, content=True)
            return

        text = _WHITESPACE_RE.sub(" ", text)
        if not text:
            return
        if state.collecting_link_text:
            state.link_text.append(text)
            return
        self.out.write_inline(text)


def walk_tree(root: Element, config: HtmlTextConfig | None = None) -> str:
    """Render an already-parsed node tree (from its ``<body>``) as text."""
    return TreeWalker(config or HtmlTextConfig()).run(find_body(root))


def walk(document: MarkupDocument, config: HtmlTextConfig | None = None) -> str:
    """Parse *document* and render its body as structured text.

    The result still carries preformatted fences and unnormalized
    whitespace; run it through :func:`mailtext.normalize.normalize`.

    Raises
    ------
    ParseUnavailableError
        If the markup cannot be parsed into a tree.
    """
    return walk_tree(parse_html(document.markup), config)
