"""Inline annotations for links and images.

Both converters render anchors and images through these functions so the
tree walker and the pattern-based fallback cannot drift apart.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlsplit

from mailtext.config import HtmlTextConfig
from mailtext.models import LinkKind

IMAGE_EXTENSIONS = (
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".svg",
    ".ico",
    ".tif",
    ".tiff",
    ".heic",
)
IMAGE_SEGMENTS = frozenset({"img", "imgs", "image", "images", "photo", "photos", "pic", "pics"})

_EMAIL_SCHEMES = ("mailto:",)
_PHONE_SCHEMES = ("tel:", "callto:")


def _strip_scheme(href: str, schemes: tuple[str, ...]) -> str | None:
    lowered = href.lower()
    for scheme in schemes:
        if lowered.startswith(scheme):
            return href[len(scheme):]
    return None


def _looks_like_image(href: str) -> bool:
    try:
        parts = urlsplit(href)
    except ValueError:
        return False
    if parts.scheme.lower() in ("mailto", "tel", "callto"):
        return False
    path = unquote(parts.path).lower()
    if path.endswith(IMAGE_EXTENSIONS):
        return True
    if any(segment in IMAGE_SEGMENTS for segment in path.split("/")):
        return True
    host_labels = (parts.hostname or "").split(".")
    return any(label.rstrip("0123456789") in IMAGE_SEGMENTS for label in host_labels)


def classify_link(href: str) -> LinkKind:
    """Classify an anchor target.

    Image resources win over mail and phone schemes, which win over
    ordinary web links.
    """
    href = href.strip()
    if _looks_like_image(href):
        return LinkKind.IMAGE
    if _strip_scheme(href, _EMAIL_SCHEMES) is not None:
        return LinkKind.EMAIL
    if _strip_scheme(href, _PHONE_SCHEMES) is not None:
        return LinkKind.PHONE
    return LinkKind.WEB


def shorten_url(url: str, max_length: int) -> str:
    """Truncate *url* to *max_length* characters, ending in ``...``."""
    if len(url) <= max_length:
        return url
    return url[: max_length - 3] + "..."


def _contact(marker: str, text: str, address: str) -> str:
    if text and text != address:
        return f"{marker} {text} ({address})"
    return f"{marker} {address}"


def _is_image_annotation(text: str, config: HtmlTextConfig) -> bool:
    return re.fullmatch(rf"{re.escape(config.image_marker)} \[[^\]]*\]", text) is not None


def render_image(alt: str | None, config: HtmlTextConfig | None = None) -> str:
    """Annotation for an ``<img>``: its alt text, or the generic placeholder."""
    config = config or HtmlTextConfig()
    label = (alt or "").strip() or config.image_placeholder
    return f"{config.image_marker} [{label}]"


def render_link(
    href: str,
    text: str,
    config: HtmlTextConfig | None = None,
) -> str:
    """Annotation for an anchor with target *href* and collected *text*.

    Parameters
    ----------
    href:
        The raw ``href`` attribute value.
    text:
        The anchor's visible text, already entity-decoded.
    config:
        Supplies the markers and the bare-URL length limit.

    Returns
    -------
    str
        One of four renderings, chosen by :func:`classify_link`.
    """
    config = config or HtmlTextConfig()
    href = href.strip()
    text = " ".join(text.split())
    kind = classify_link(href)

    if kind is LinkKind.IMAGE:
        if _is_image_annotation(text, config):
            return text
        label = text or config.image_link_placeholder
        return f"{config.image_marker} [{label}]"

    if kind is LinkKind.EMAIL:
        address = unquote(_strip_scheme(href, _EMAIL_SCHEMES) or "").split("?", 1)[0].strip()
        return _contact(config.email_marker, text, address)

    if kind is LinkKind.PHONE:
        number = unquote(_strip_scheme(href, _PHONE_SCHEMES) or "").strip()
        return _contact(config.phone_marker, text, number)

    if text and text != href:
        return f"{text} {config.link_marker}"
    if text:
        return text
    return f"{config.link_marker} {shorten_url(href, config.max_url_length)}"
