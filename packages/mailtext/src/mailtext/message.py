"""Body text extraction for RFC 5322 messages using the stdlib ``email`` module.

Picks the ``text/plain`` or ``text/html`` part of a message.  HTML parts
are handed to :class:`~mailtext.converter.HtmlTextConverter` as raw bytes
together with the part's ``charset`` parameter, so the MIME declaration
takes precedence over anything the markup claims about itself.
"""

from __future__ import annotations

import email
import email.policy
import logging
from dataclasses import dataclass, field
from email.message import Message

from mailtext.config import HtmlTextConfig
from mailtext.converter import HtmlTextConverter
from mailtext.errors import ConversionError, ErrorCode
from mailtext.models import ConversionResult

logger = logging.getLogger("mailtext")


@dataclass
class MessageBody:
    """Body text selected from one message."""

    text: str = ""
    source: str = "plain"  # "plain" or "html_converted"
    charset: str | None = None
    conversion: ConversionResult | None = None
    error_details: list[ConversionError] = field(default_factory=list)


def _part_text(part: Message) -> str | None:
    try:
        payload = part.get_content()
    except (LookupError, UnicodeDecodeError, AttributeError):
        # fall back to the raw transfer-decoded bytes
        raw = part.get_payload(decode=True)
        if not isinstance(raw, bytes):
            return None
        return raw.decode("utf-8", errors="replace")
    return payload if isinstance(payload, str) else None


def extract_message_text(
    message: Message,
    config: HtmlTextConfig | None = None,
) -> MessageBody:
    """Select and, where needed, convert the body of *message*.

    Parameters
    ----------
    message:
        A parsed message (``email.message.Message`` or ``EmailMessage``).
    config:
        Conversion configuration; ``prefer_plain_text`` decides between a
        ``text/plain`` and a ``text/html`` alternative.

    Returns
    -------
    MessageBody
        Empty text when the message has no textual body part.
    """
    config = config or HtmlTextConfig()
    plain_parts: list[tuple[str, str | None]] = []
    html_parts: list[tuple[bytes, str | None]] = []

    for part in message.walk():
        if part.get_content_maintype() == "multipart":
            continue
        disposition = str(part.get("Content-Disposition", ""))
        if "attachment" in disposition:
            continue

        content_type = part.get_content_type()
        if content_type == "text/plain":
            text = _part_text(part)
            if text is not None:
                plain_parts.append((text, part.get_content_charset()))
        elif content_type == "text/html":
            raw = part.get_payload(decode=True)
            if isinstance(raw, bytes):
                html_parts.append((raw, part.get_content_charset()))

    if plain_parts and (config.prefer_plain_text or not html_parts):
        return MessageBody(
            text="\n".join(text for text, _ in plain_parts),
            source="plain",
            charset=plain_parts[0][1],
        )

    if html_parts:
        # later HTML parts are alternative renderings of the first
        raw, declared = html_parts[0]
        result = HtmlTextConverter(config).convert(raw, declared)
        return MessageBody(
            text=result.text,
            source="html_converted",
            charset=result.charset.name,
            conversion=result,
        )

    return MessageBody()


def extract_message_text_from_bytes(
    data: bytes,
    config: HtmlTextConfig | None = None,
) -> MessageBody:
    """Parse raw message bytes, then behave like :func:`extract_message_text`.

    A message that cannot be read yields an empty body carrying an
    ``E_MESSAGE_PARSE_FAILED`` record instead of raising.
    """
    try:
        message = email.message_from_bytes(data, policy=email.policy.default)
        return extract_message_text(message, config)
    except Exception as exc:
        err = ConversionError(
            code=ErrorCode.E_MESSAGE_PARSE_FAILED,
            message=f"Failed to parse message: {exc}",
            stage="message",
            recoverable=False,
        )
        logger.error(
            "mailtext | code=%s | detail=%s",
            ErrorCode.E_MESSAGE_PARSE_FAILED.value,
            str(exc),
        )
        return MessageBody(error_details=[err])
