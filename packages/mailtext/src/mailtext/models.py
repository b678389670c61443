"""Pydantic models and enumerations for the mailtext package.

Contains ``ConversionPath``, ``CharsetSource``, ``LinkKind``,
``ChosenCharset``, ``MarkupDocument`` and ``ConversionResult``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from mailtext.errors import ConversionError

__all__ = [
    "ConversionPath",
    "CharsetSource",
    "LinkKind",
    "ChosenCharset",
    "MarkupDocument",
    "ConversionResult",
]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ConversionPath(str, Enum):
    """Which converter produced the final text."""

    TREE_WALK = "tree_walk"
    FALLBACK = "fallback"
    PASSTHROUGH = "passthrough"


class CharsetSource(str, Enum):
    """Where the chosen charset came from."""

    DECLARED = "declared"
    META = "meta"
    DEFAULT = "default"


class LinkKind(str, Enum):
    """Classification of an anchor's ``href``."""

    IMAGE = "image"
    EMAIL = "email"
    PHONE = "phone"
    WEB = "web"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class ChosenCharset(BaseModel):
    """Outcome of charset resolution.

    ``name`` is always a codec Python can decode with.  ``requested`` keeps
    the raw name that was asked for (by the caller or a meta tag) so an
    unusable declaration is still visible in diagnostics.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "utf-8"
    source: CharsetSource = CharsetSource.DEFAULT
    requested: str | None = None
    fallback_used: bool = False


class MarkupDocument(BaseModel):
    """Raw HTML plus its resolved charset; immutable once built."""

    model_config = ConfigDict(frozen=True)

    markup: str
    charset: ChosenCharset = ChosenCharset()


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class ConversionResult(BaseModel):
    """Final result of converting one HTML body."""

    text: str
    charset: ChosenCharset = ChosenCharset()
    path: ConversionPath = ConversionPath.TREE_WALK
    input_length: int = 0
    output_length: int = 0
    warnings: list[str] = []
    error_details: list[ConversionError] = []
    processing_time_seconds: float = 0.0
