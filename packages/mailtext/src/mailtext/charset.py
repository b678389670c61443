"""Charset resolution for HTML bodies.

``resolve_charset`` picks the codec to decode with: a caller-declared
charset first, then a ``<meta>`` declaration inside the markup, then
UTF-8.  ``decode_markup`` turns raw bytes into text under that choice,
downgrading to UTF-8 and finally to lossy UTF-8 instead of raising.
"""

from __future__ import annotations

import codecs
import logging
import re

from mailtext.errors import ErrorCode
from mailtext.models import CharsetSource, ChosenCharset

logger = logging.getLogger("mailtext")

DEFAULT_CHARSET = "utf-8"

_CHARSET_NAME = r"""["']?\s*([A-Za-z0-9][A-Za-z0-9._:\-]*)"""

_CONTENT_TYPE_META_RE = re.compile(
    r"""<meta\b[^>]*?content\s*=\s*["']?\s*text/html\s*;\s*charset\s*="""
    + _CHARSET_NAME,
    re.IGNORECASE,
)
_CHARSET_META_RE = re.compile(
    r"""<meta\b[^>]*?\bcharset\s*=\s*""" + _CHARSET_NAME,
    re.IGNORECASE,
)


def _lookup(name: str) -> str | None:
    """Return the canonical codec name for *name*, or None if unregistered."""
    try:
        info = codecs.lookup(name)
    except (LookupError, ValueError):
        return None
    # bytes-to-bytes codecs such as base64 or rot13 are registered but cannot decode text
    if not getattr(info, "_is_text_encoding", True):
        return None
    return info.name


def detect_declared_charset(raw_markup: str | bytes) -> str | None:
    """Return the charset named by a ``<meta>`` tag, if any.

    The content-type form (``content="text/html; charset=X"``) is tried
    before the direct form (``<meta charset="X">``).
    """
    if isinstance(raw_markup, bytes):
        raw_markup = raw_markup.decode("latin-1")
    for pattern in (_CONTENT_TYPE_META_RE, _CHARSET_META_RE):
        match = pattern.search(raw_markup)
        if match:
            return match.group(1)
    return None


def resolve_charset(
    raw_markup: str | bytes,
    declared_charset: str | None = None,
) -> ChosenCharset:
    """Choose the charset for *raw_markup*.

    Parameters
    ----------
    raw_markup:
        The HTML body, as text or as undecoded bytes.
    declared_charset:
        Charset supplied by the caller (e.g. a MIME ``charset`` parameter).
        Blank values count as absent.

    Returns
    -------
    ChosenCharset
        Always names a usable codec; unknown names resolve to UTF-8 with
        ``fallback_used`` set.
    """
    if declared_charset and declared_charset.strip():
        requested = declared_charset.strip()
        source = CharsetSource.DECLARED
    else:
        requested = detect_declared_charset(raw_markup)
        source = CharsetSource.META if requested else CharsetSource.DEFAULT

    if requested is None:
        return ChosenCharset(name=DEFAULT_CHARSET, source=CharsetSource.DEFAULT)

    name = _lookup(requested)
    if name is None:
        logger.warning(
            "mailtext | code=%s | charset=%s | detail=unknown charset, using %s",
            ErrorCode.W_CHARSET_UNKNOWN.value,
            requested,
            DEFAULT_CHARSET,
        )
        return ChosenCharset(
            name=DEFAULT_CHARSET,
            source=source,
            requested=requested,
            fallback_used=True,
        )

    return ChosenCharset(name=name, source=source, requested=requested)


def decode_markup(
    raw_markup: str | bytes,
    charset: ChosenCharset,
) -> tuple[str, list[ErrorCode]]:
    """Decode *raw_markup* under *charset*.

    Text input is returned unchanged.  Bytes are decoded strictly under the
    chosen charset, then strictly as UTF-8, then as UTF-8 with replacement
    characters.  Each downgrade is reported as ``W_CHARSET_DECODE_FAILED``.
    """
    if isinstance(raw_markup, str):
        return raw_markup, []

    warnings: list[ErrorCode] = []
    for codec in dict.fromkeys((charset.name, DEFAULT_CHARSET)):
        try:
            return raw_markup.decode(codec), warnings
        except (UnicodeDecodeError, LookupError) as exc:
            logger.warning(
                "mailtext | code=%s | charset=%s | detail=%s",
                ErrorCode.W_CHARSET_DECODE_FAILED.value,
                codec,
                exc,
            )
            warnings.append(ErrorCode.W_CHARSET_DECODE_FAILED)

    return raw_markup.decode(DEFAULT_CHARSET, errors="replace"), warnings
