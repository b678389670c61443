"""mailtext -- HTML mail body to structured plain text.

Re-exports all public types: converter, config, models, errors, message
body extraction, and the building blocks (entity decoding, charset
resolution, normalization) used by the converter.
"""

from mailtext.charset import decode_markup, detect_declared_charset, resolve_charset
from mailtext.config import HtmlTextConfig
from mailtext.converter import (
    HtmlTextConverter,
    convert_html_to_text,
    extract_text_with_charset_detection,
)
from mailtext.entities import ENTITY_TABLE, decode_entities
from mailtext.errors import ConversionError, ErrorCode, ParseUnavailableError
from mailtext.fallback import fallback_convert
from mailtext.message import MessageBody, extract_message_text, extract_message_text_from_bytes
from mailtext.models import (
    CharsetSource,
    ChosenCharset,
    ConversionPath,
    ConversionResult,
    LinkKind,
    MarkupDocument,
)
from mailtext.normalize import normalize
from mailtext.walker import walk

__all__ = [
    # Converter
    "HtmlTextConverter",
    "convert_html_to_text",
    "extract_text_with_charset_detection",
    # Config
    "HtmlTextConfig",
    # Errors
    "ErrorCode",
    "ConversionError",
    "ParseUnavailableError",
    # Models
    "ConversionPath",
    "CharsetSource",
    "LinkKind",
    "ChosenCharset",
    "MarkupDocument",
    "ConversionResult",
    # Messages
    "MessageBody",
    "extract_message_text",
    "extract_message_text_from_bytes",
    # Building blocks
    "ENTITY_TABLE",
    "decode_entities",
    "detect_declared_charset",
    "resolve_charset",
    "decode_markup",
    "walk",
    "fallback_convert",
    "normalize",
]
