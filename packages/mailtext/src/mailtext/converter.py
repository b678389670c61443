"""HtmlTextConverter -- orchestrator and public API for HTML body conversion.

Routes one HTML body through: charset resolution, decoding, the
structural tree walker (or the pattern-based fallback when no tree can be
built), normalization, and fence removal.  Every failure is recovered
locally; the worst case hands back the decoded input unchanged.
"""

from __future__ import annotations

import logging
import time

from mailtext.charset import decode_markup, resolve_charset
from mailtext.config import HtmlTextConfig
from mailtext.errors import ConversionError, ErrorCode, ParseUnavailableError
from mailtext.fallback import fallback_convert
from mailtext.models import ConversionPath, ConversionResult, MarkupDocument
from mailtext.normalize import normalize_detailed, strip_preformatted_markers
from mailtext.walker import walk

logger = logging.getLogger("mailtext")

_PREVIEW_CHARS = 200


class HtmlTextConverter:
    """Top-level orchestrator turning HTML mail bodies into structured text.

    Parameters
    ----------
    config:
        Conversion configuration. Uses defaults when *None*.
    """

    def __init__(self, config: HtmlTextConfig | None = None) -> None:
        self._config = config or HtmlTextConfig()

    @property
    def config(self) -> HtmlTextConfig:
        return self._config

    def convert(
        self,
        html: str | bytes,
        declared_charset: str | None = None,
    ) -> ConversionResult:
        """Convert a single HTML body.

        Parameters
        ----------
        html:
            The body as text, or as undecoded bytes.
        declared_charset:
            Charset supplied by the caller (e.g. the MIME part's ``charset``
            parameter).  Takes precedence over any ``<meta>`` declaration.

        Returns
        -------
        ConversionResult
            The text plus the path taken and every recovery on the way.
        """
        start = time.monotonic()
        config = self._config
        details: list[ConversionError] = []

        # ==============================================================
        # Step 1: Resolve and Decode
        # ==============================================================
        charset = resolve_charset(html, declared_charset)
        if charset.fallback_used:
            details.append(
                ConversionError(
                    code=ErrorCode.W_CHARSET_UNKNOWN,
                    message=f"Unknown charset {charset.requested!r}, decoded as {charset.name}",
                    stage="charset",
                )
            )

        markup, decode_codes = decode_markup(html, charset)
        for code in decode_codes:
            details.append(
                ConversionError(
                    code=code,
                    message="Charset decode failed, downgraded decoding",
                    stage="charset",
                )
            )

        document = MarkupDocument(markup=markup, charset=charset)
        if config.log_sample_data:
            logger.debug("mailtext | input_preview=%r", markup[:_PREVIEW_CHARS])

        # ==============================================================
        # Step 2: Convert (tree walk, then fallback)
        # ==============================================================
        text: str | None = None
        degenerate = False
        path = ConversionPath.TREE_WALK

        if config.use_tree_walker:
            try:
                text, degenerate = normalize_detailed(walk(document, config), config)
            except ParseUnavailableError as exc:
                details.append(exc.error)
                logger.warning(
                    "mailtext | code=%s | detail=%s | action=fallback",
                    exc.code.value,
                    exc,
                )
            except Exception as exc:
                details.append(
                    ConversionError(
                        code=ErrorCode.W_WALKER_FAILED,
                        message=f"Tree walk failed: {exc!r}",
                        stage="walk",
                    )
                )
                logger.warning(
                    "mailtext | code=%s | detail=%r | action=fallback",
                    ErrorCode.W_WALKER_FAILED.value,
                    exc,
                )

        if text is None:
            path = ConversionPath.FALLBACK
            try:
                text, degenerate = normalize_detailed(fallback_convert(markup, config), config)
            except Exception as exc:
                return self._passthrough(document, details, exc, start)

        # ==============================================================
        # Step 3: Finish
        # ==============================================================
        if degenerate:
            details.append(
                ConversionError(
                    code=ErrorCode.W_OUTPUT_DEGENERATE,
                    message="Output was only an image placeholder; kept lightly cleaned text",
                    stage="normalize",
                )
            )
            logger.warning(
                "mailtext | code=%s | path=%s",
                ErrorCode.W_OUTPUT_DEGENERATE.value,
                path.value,
            )

        text = strip_preformatted_markers(text)
        elapsed = time.monotonic() - start

        logger.info(
            "mailtext | path=%s | charset=%s | chars_in=%d | chars_out=%d | "
            "warnings=%d | time=%.3fs",
            path.value,
            charset.name,
            len(markup),
            len(text),
            len(details),
            elapsed,
        )
        if config.log_sample_data:
            logger.debug("mailtext | output_preview=%r", text[:_PREVIEW_CHARS])

        return ConversionResult(
            text=text,
            charset=charset,
            path=path,
            input_length=len(markup),
            output_length=len(text),
            warnings=[d.code.value for d in details],
            error_details=details,
            processing_time_seconds=elapsed,
        )

    @staticmethod
    def _passthrough(
        document: MarkupDocument,
        details: list[ConversionError],
        exc: Exception,
        start: float,
    ) -> ConversionResult:
        """Result carrying the decoded input unchanged after both converters failed."""
        details.append(
            ConversionError(
                code=ErrorCode.E_CONVERSION_FAILED,
                message=f"Fallback conversion failed: {exc!r}",
                stage="fallback",
                recoverable=False,
            )
        )
        logger.error(
            "mailtext | code=%s | detail=%r | action=passthrough",
            ErrorCode.E_CONVERSION_FAILED.value,
            exc,
        )
        markup = document.markup
        return ConversionResult(
            text=markup,
            charset=document.charset,
            path=ConversionPath.PASSTHROUGH,
            input_length=len(markup),
            output_length=len(markup),
            warnings=[d.code.value for d in details],
            error_details=details,
            processing_time_seconds=time.monotonic() - start,
        )


def convert_html_to_text(
    html: str | bytes,
    declared_charset: str | None = None,
    config: HtmlTextConfig | None = None,
) -> str:
    """Convert an HTML mail body to structured plain text.

    Never raises: on internal failure the fallback result, or at worst
    the (decoded) input itself, is returned.
    """
    return HtmlTextConverter(config).convert(html, declared_charset).text


def extract_text_with_charset_detection(
    html: str | bytes,
    config: HtmlTextConfig | None = None,
) -> str:
    """Like :func:`convert_html_to_text`, resolving the charset from the markup alone."""
    return HtmlTextConverter(config).convert(html).text
