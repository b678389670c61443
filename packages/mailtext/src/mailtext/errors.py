"""Error codes and structured error model for the mailtext package.

``ErrorCode`` lists every recovery the converter can take.  Nothing here
reaches callers of the public string functions; the codes surface only in
``ConversionResult.warnings`` / ``error_details`` and in log lines.
``ParseUnavailableError`` is the raisable signal used internally when the
markup cannot be turned into a node tree.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for mailtext.

    Fatal codes use an ``E_`` prefix; warnings use ``W_``.
    Values equal their names for stable metric/alerting strings.
    """

    # Fatal for a single conversion (input is passed through)
    E_CONVERSION_FAILED = "E_CONVERSION_FAILED"
    E_MESSAGE_PARSE_FAILED = "E_MESSAGE_PARSE_FAILED"

    # Warnings (recovered locally)
    W_HTML_PARSE_UNAVAILABLE = "W_HTML_PARSE_UNAVAILABLE"
    W_WALKER_FAILED = "W_WALKER_FAILED"
    W_CHARSET_UNKNOWN = "W_CHARSET_UNKNOWN"
    W_CHARSET_DECODE_FAILED = "W_CHARSET_DECODE_FAILED"
    W_OUTPUT_DEGENERATE = "W_OUTPUT_DEGENERATE"


class ConversionError(BaseModel):
    """Structured record of one recovery or failure during conversion.

    This is a Pydantic model (data structure), not a Python Exception.
    Use ``ParseUnavailableError`` to raise in control flow.
    """

    code: ErrorCode
    message: str
    stage: str | None = None
    recoverable: bool = True


class ParseUnavailableError(Exception):
    """Raised when the markup cannot be parsed into a node tree.

    Carries the structured ``ConversionError`` as ``.error``.
    """

    def __init__(self, message: str) -> None:
        self.error = ConversionError(
            code=ErrorCode.W_HTML_PARSE_UNAVAILABLE,
            message=message,
            stage="parse",
        )
        super().__init__(message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code
