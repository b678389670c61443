"""Whitespace, marker and duplicate-line cleanup for converted text.

``normalize`` is the last pass over the output of either converter.
Preformatted regions are fenced with two private-use characters
(``PRE_OPEN`` / ``PRE_CLOSE``); everything inside a fence passes through
verbatim, and the fences themselves survive normalization so that
``normalize(normalize(t)) == normalize(t)``.  The converter removes them
with :func:`strip_preformatted_markers` once normalization is done.
"""

from __future__ import annotations

import re
from typing import Callable

from mailtext.annotations import render_image
from mailtext.config import HtmlTextConfig

PRE_OPEN = "\ue000"
PRE_CLOSE = "\ue001"

_PRE_REGION_RE = re.compile(f"({PRE_OPEN}.*?(?:{PRE_CLOSE}|\\Z))", re.DOTALL)
_ZERO_WIDTH_RE = re.compile("[\u200b-\u200d\ufeff]")

_SPACE_RUN_RE = re.compile(r"[ \t\f\v]+")
_SPACE_AROUND_NEWLINE_RE = re.compile(r" *\n *")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

# Horizontal whitespace, as collapsed by ``_collapse``.
_HS = r"[ \t\f\v]"

# Marker repair, applied until nothing changes.  Every rule shortens the
# text, so the loop terminates.
_MARKER_RULES: list[tuple[re.Pattern[str], str]] = [
    # emphasis opener glued to a strike-through opener, either order
    (re.compile(rf"(\*{{1,2}}){_HS}*~~(?!~)"), r"\1"),
    (re.compile(rf"(?<!~)~~{_HS}*(\*{{1,2}})"), r"\1"),
    # stacked emphasis runs
    (re.compile(rf"\*\*{_HS}*\*{_HS}*\*"), "**"),
    (re.compile(rf"\*{_HS}+\*{_HS}+\*"), "*"),
    (re.compile(rf"~~{_HS}*~~{_HS}*~~"), "~~"),
    # pairs with nothing to wrap
    (re.compile(rf"\*\*({_HS}*)\*\*"), r"\1"),
    (re.compile(rf"(?<!\*)\*({_HS}+)\*(?!\*)"), r"\1"),
    (re.compile(rf"~~({_HS}*)~~"), r"\1"),
    (re.compile(rf"`({_HS}*)`"), r"\1"),
    # a marker standing alone between spaces
    (re.compile(rf"(?<={_HS})(?:\*\*|\*|~~)(?={_HS})"), ""),
]

_SINGLE_STAR_RE = re.compile(r"(?<!\*)\*(?!\*)")


def _split_preformatted(text: str) -> list[tuple[str, bool]]:
    """Split *text* into ``(chunk, is_preformatted)`` pieces."""
    pieces: list[tuple[str, bool]] = []
    for index, chunk in enumerate(_PRE_REGION_RE.split(text)):
        if not chunk:
            continue
        if index % 2:
            pieces.append((chunk, True))
        else:
            pieces.append((chunk.replace(PRE_CLOSE, ""), False))
    return pieces


def _map_outside_preformatted(text: str, func: Callable[[str], str]) -> str:
    return "".join(
        chunk if is_pre else func(chunk) for chunk, is_pre in _split_preformatted(text)
    )


def strip_preformatted_markers(text: str) -> str:
    """Remove the preformatted fences, keeping their content."""
    return text.replace(PRE_OPEN, "").replace(PRE_CLOSE, "")


def _collapse(chunk: str) -> str:
    chunk = _SPACE_RUN_RE.sub(" ", chunk)
    chunk = _SPACE_AROUND_NEWLINE_RE.sub("\n", chunk)
    return _BLANK_LINES_RE.sub("\n\n", chunk)


def collapse_whitespace(text: str) -> str:
    """Collapse space/tab runs, trim around line breaks, keep at most one blank line.

    Preformatted regions are left untouched.
    """
    return _map_outside_preformatted(text, _collapse)


def _remove_last(line: str, marker: str) -> str:
    index = line.rfind(marker)
    return line[:index] + line[index + len(marker):]


def _balance_line(line: str) -> str:
    for marker in ("**", "~~", "`"):
        if line.count(marker) % 2:
            line = _remove_last(line, marker)
    singles = list(_SINGLE_STAR_RE.finditer(line))
    if len(singles) % 2:
        last = singles[-1].start()
        line = line[:last] + line[last + 1:]
    return line


def repair_markers(text: str) -> str:
    """Collapse broken emphasis marker runs and drop unpaired markers.

    Works line by line; markers never pair across a line break.
    """
    while True:
        repaired = text
        for pattern, replacement in _MARKER_RULES:
            repaired = pattern.sub(replacement, repaired)
        repaired = "\n".join(_balance_line(line) for line in repaired.split("\n"))
        if repaired == text:
            return repaired
        text = repaired


def drop_duplicate_lines(text: str, seen: set[str] | None = None) -> str:
    """Drop non-empty lines whose trimmed content already appeared.

    *seen* may be shared between calls so that duplicates are caught
    across preformatted regions.
    """
    seen = set() if seen is None else seen
    kept: list[str] = []
    for line in text.split("\n"):
        key = line.strip()
        if key:
            if key in seen:
                continue
            seen.add(key)
        kept.append(line)
    return "\n".join(kept)


def _prepare(text: str) -> str:
    text = _ZERO_WIDTH_RE.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.replace("\xa0", " ").replace("\ufffc", " ")


def normalize_detailed(
    text: str,
    config: HtmlTextConfig | None = None,
) -> tuple[str, bool]:
    """Normalize *text*; also report whether the degenerate-output guard fired."""
    if not text:
        return "", False
    config = config or HtmlTextConfig()
    text = _prepare(text)

    seen: set[str] = set()
    cleaned: list[str] = []
    for chunk, is_pre in _split_preformatted(text):
        if is_pre:
            cleaned.append(chunk)
            continue
        chunk = repair_markers(chunk)
        chunk = _collapse(chunk)
        chunk = drop_duplicate_lines(chunk, seen)
        cleaned.append(_BLANK_LINES_RE.sub("\n\n", chunk))
    result = "".join(cleaned).strip()

    placeholder = render_image(None, config)
    if strip_preformatted_markers(result).strip() == placeholder:
        lenient = _map_outside_preformatted(
            text, lambda chunk: _collapse(repair_markers(chunk))
        ).strip()
        if len(lenient) > config.degenerate_min_length:
            return lenient, True
    return result, False


def normalize(text: str, config: HtmlTextConfig | None = None) -> str:
    """Final cleanup pass applied to the output of either converter.

    Strips zero-width characters and turns non-breaking spaces into plain
    spaces, repairs broken emphasis markers, collapses whitespace, drops
    repeated lines and keeps at most one blank line between blocks.  If
    that leaves nothing but the generic image placeholder although the
    input was substantially longer, the lightly cleaned input is returned
    instead.
    """
    return normalize_detailed(text, config)[0]
