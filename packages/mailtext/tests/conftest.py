"""Shared fixtures for mailtext tests."""

from __future__ import annotations

from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email import encoders

import pytest

from mailtext.config import HtmlTextConfig


# ---------------------------------------------------------------------------
# HTML samples
# ---------------------------------------------------------------------------

NEWSLETTER_HTML = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Weekly news</title>
  <style>body { color: red; }</style>
</head>
<body>
  <h1>Weekly News</h1>
  <p>Hello <b>reader</b>, here is what happened.</p>
  <ul>
    <li>First item</li>
    <li>Second item</li>
  </ul>
  <p>Read more on <a href="https://example.com/news">our site</a>.</p>
  <script>trackOpen();</script>
  <!-- tracking pixel -->
</body>
</html>
"""

PLAIN_BODY = "Hello, this is a plain text body."
HTML_BODY = "<html><body><p>Hello, this is <b>HTML</b> body.</p></body></html>"


@pytest.fixture
def default_config() -> HtmlTextConfig:
    return HtmlTextConfig()


@pytest.fixture
def fallback_config() -> HtmlTextConfig:
    return HtmlTextConfig(use_tree_walker=False)


@pytest.fixture
def newsletter_html() -> str:
    return NEWSLETTER_HTML


# ---------------------------------------------------------------------------
# Message fixtures
# ---------------------------------------------------------------------------


def build_message_bytes(
    *,
    plain: str | None = PLAIN_BODY,
    html: str | None = None,
    html_charset: str = "utf-8",
    attachment: bool = False,
) -> bytes:
    """Build a minimal valid RFC 5322 message as bytes."""
    if plain and html:
        msg = MIMEMultipart("alternative")
        msg.attach(MIMEText(plain, "plain"))
        msg.attach(MIMEText(html, "html", html_charset))
    elif html:
        msg = MIMEMultipart()
        msg.attach(MIMEText(html, "html", html_charset))
    elif plain:
        msg = MIMEText(plain, "plain")
    else:
        msg = MIMEText("", "plain")

    if attachment:
        outer = MIMEMultipart("mixed")
        if isinstance(msg, MIMEMultipart):
            for part in msg.get_payload():
                outer.attach(part)
        else:
            outer.attach(msg)

        att = MIMEBase("text", "html")
        att.set_payload(b"<p>Attached page</p>")
        encoders.encode_base64(att)
        att.add_header("Content-Disposition", "attachment", filename="page.html")
        outer.attach(att)
        msg = outer

    msg["From"] = "sender@example.com"
    msg["To"] = "recipient@example.com"
    msg["Subject"] = "Test Subject"
    return msg.as_bytes()


@pytest.fixture
def plain_message_bytes() -> bytes:
    return build_message_bytes()


@pytest.fixture
def html_message_bytes() -> bytes:
    return build_message_bytes(plain=None, html=HTML_BODY)


@pytest.fixture
def alternative_message_bytes() -> bytes:
    return build_message_bytes(plain=PLAIN_BODY, html=HTML_BODY)


@pytest.fixture
def message_builder():
    return build_message_bytes
