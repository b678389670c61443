"""Pattern-based HTML to text conversion.

Used when no node tree can be built, or when the tree walk itself fails.
Works on the raw markup with an ordered list of regular-expression
passes.  It keeps less structure than the tree walker (no heading or
list markers) but adds inline emphasis markers, and it must never raise
for any ``str`` input.
"""

from __future__ import annotations

import html
import re

from mailtext.annotations import render_image, render_link
from mailtext.config import HtmlTextConfig
from mailtext.entities import decode_entities
from mailtext.normalize import PRE_CLOSE, PRE_OPEN, collapse_whitespace

_FLAGS = re.IGNORECASE | re.DOTALL

_SKIPPED_REGION_RE = re.compile(
    r"<(script|style|noscript|iframe|object|applet|head|title|template)\b[^>]*>.*?(?:</\1\s*>|\Z)",
    _FLAGS,
)
_EMBED_RE = re.compile(r"<embed\b[^>]*>(?:.*?</embed\s*>)?", _FLAGS)
_COMMENT_RE = re.compile(r"<!--.*?(?:-->|\Z)", re.DOTALL)
_DECLARATION_RE = re.compile(r"<!DOCTYPE[^>]*>|<\?xml.*?\?>|<!\[CDATA\[.*?\]\]>", _FLAGS)

_ANCHOR_RE = re.compile(
    r"""<a\b[^>]*?\bhref\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'>]+))[^>]*>"""
    r"(?P<body>.*?)</a\s*>",
    _FLAGS,
)
_IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_ALT_RE = re.compile(r"""\balt\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", re.IGNORECASE)

_PRE_OPEN_RE = re.compile(r"<pre\b[^>]*>\n?", re.IGNORECASE)
_PRE_CLOSE_RE = re.compile(r"</pre\s*>", re.IGNORECASE)
_LINE_BREAK_RE = re.compile(
    r"<br\b[^>]*>|<hr\b[^>]*>|</?(?:p|div|h[1-6]|ul|ol|menu|li|dl|dt|dd|table|thead|tbody|tfoot"
    r"|tr|caption|blockquote|section|article|header|footer|nav|aside|main|form|fieldset"
    r"|figure|figcaption|address|center|body|html)\b[^>]*>",
    re.IGNORECASE,
)
_CELL_RE = re.compile(r"</?(?:td|th)\b[^>]*>", re.IGNORECASE)
_INLINE_MARKERS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"</?(?:b|strong)\b[^>]*>", re.IGNORECASE), "**"),
    (re.compile(r"</?(?:em|i)\b[^>]*>", re.IGNORECASE), "*"),
    (re.compile(r"</?(?:s|strike|del)\b[^>]*>", re.IGNORECASE), "~~"),
    (re.compile(r"</?code\b[^>]*>", re.IGNORECASE), "`"),
]
_ANY_TAG_RE = re.compile(r"</?[A-Za-z][^>]*>|<![^>]*>")


def _attribute(match: re.Match[str] | None) -> str | None:
    if match is None:
        return None
    return next((group for group in match.groups() if group is not None), None)


def _plain(fragment: str, config: HtmlTextConfig) -> str:
    """Visible text of an inline fragment, entity-decoded."""
    fragment = _IMG_RE.sub(lambda m: " " + _render_img(m.group(0), config) + " ", fragment)
    fragment = _ANY_TAG_RE.sub("", fragment)
    return decode_entities(fragment, ascii_only=config.ascii_only_numeric_entities)


def _render_img(tag: str, config: HtmlTextConfig) -> str:
    alt = _attribute(_ALT_RE.search(tag))
    if alt is not None:
        alt = decode_entities(alt, ascii_only=config.ascii_only_numeric_entities)
    return render_image(alt, config)


def _escape(annotation: str) -> str:
    # annotations are re-encoded so that tag stripping and the final entity
    # pass leave them exactly as rendered
    return html.escape(annotation, quote=False)


def _replace_anchor(match: re.Match[str], config: HtmlTextConfig) -> str:
    href = match.group("dq")
    if href is None:
        href = match.group("sq")
    if href is None:
        href = match.group("bare") or ""
    href = decode_entities(href, ascii_only=config.ascii_only_numeric_entities).strip()
    text = _plain(match.group("body"), config)
    if not href:
        return _escape(text)
    return " " + _escape(render_link(href, text, config)) + " "


def fallback_convert(raw_markup: str, config: HtmlTextConfig | None = None) -> str:
    """Convert *raw_markup* to text with regular expressions only.

    Parameters
    ----------
    raw_markup:
        Decoded HTML.  May be arbitrarily malformed.
    config:
        Supplies annotation markers and the numeric-entity policy.

    Returns
    -------
    str
        Text with collapsed whitespace.  Preformatted regions are still
        fenced; :func:`mailtext.normalize.normalize` finishes the job.
    """
    config = config or HtmlTextConfig()
    text = raw_markup.replace(PRE_OPEN, "").replace(PRE_CLOSE, "")

    text = _COMMENT_RE.sub("", text)
    text = _DECLARATION_RE.sub("", text)
    text = _SKIPPED_REGION_RE.sub("", text)
    text = _EMBED_RE.sub("", text)

    text = _ANCHOR_RE.sub(lambda m: _replace_anchor(m, config), text)
    text = _IMG_RE.sub(lambda m: " " + _escape(_render_img(m.group(0), config)) + " ", text)

    text = _PRE_OPEN_RE.sub("\n" + PRE_OPEN, text)
    text = _PRE_CLOSE_RE.sub(PRE_CLOSE + "\n", text)
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _CELL_RE.sub(" ", text)
    for pattern, marker in _INLINE_MARKERS:
        text = pattern.sub(marker, text)
    text = _ANY_TAG_RE.sub("", text)

    text = decode_entities(text, ascii_only=config.ascii_only_numeric_entities)
    return collapse_whitespace(text)
