"""Tests for mailtext.converter."""

from __future__ import annotations

import logging

import pytest

from mailtext.config import HtmlTextConfig
from mailtext.converter import (
    HtmlTextConverter,
    convert_html_to_text,
    extract_text_with_charset_detection,
)
from mailtext.errors import ErrorCode, ParseUnavailableError
from mailtext.models import CharsetSource, ConversionPath
from mailtext.normalize import PRE_CLOSE, PRE_OPEN

IMG = "\U0001f5bc\ufe0f"


def _raise_parse_unavailable(document, config=None):
    raise ParseUnavailableError("no tree today")


def _raise_runtime(*args, **kwargs):
    raise RuntimeError("walker bug")


class TestTreeWalkPath:
    def test_structure_preserved(self):
        result = convert_html_to_text("<h1>Title</h1><p>Body</p>")
        assert "Title" in result and "Body" in result
        assert result.index("Title") < result.index("Body")
        assert "\n\n" in result[result.index("Title"):result.index("Body")]
        assert "<h1>" not in result and "<p>" not in result

    def test_script_excluded(self):
        result = convert_html_to_text("<p>A</p><script>alert(1)</script><p>B</p>")
        assert "alert" not in result
        assert "<script" not in result
        assert "A" in result and "B" in result

    def test_link_classification(self):
        contact = convert_html_to_text('<a href="mailto:x@y.com">Contact</a>')
        assert "Contact" in contact and "x@y.com" in contact

        photo = convert_html_to_text('<a href="http://a.com/pic.jpg">photo</a>')
        assert photo == f"{IMG} [photo]"

    def test_duplicate_suppression(self):
        result = convert_html_to_text("<p>Same line</p><div>Same line</div>")
        assert result.count("Same line") == 1

    def test_newsletter(self, newsletter_html):
        assert convert_html_to_text(newsletter_html) == (
            "=== Weekly News ===\n\n"
            "Hello reader, here is what happened.\n\n"
            "• First item\n"
            "• Second item\n\n"
            "Read more on our site \U0001f517."
        )

    def test_bare_ampersands(self):
        assert convert_html_to_text("<p>AT&T rocks</p>") == "AT&T rocks"
        assert convert_html_to_text("<p>see ?a=1&b=2 now</p>") == "see ?a=1&b=2 now"
        assert convert_html_to_text("<p>&#65 x</p>") == "&#65 x"

    def test_no_fences_in_output(self):
        result = convert_html_to_text("<pre>  code  </pre>")
        assert result == "  code  "
        assert PRE_OPEN not in result and PRE_CLOSE not in result

    def test_result_details(self):
        result = HtmlTextConverter().convert("<p>Hello</p>")
        assert result.text == "Hello"
        assert result.path == ConversionPath.TREE_WALK
        assert result.warnings == []
        assert result.input_length == len("<p>Hello</p>")
        assert result.output_length == 5
        assert result.processing_time_seconds >= 0


class TestCharsets:
    def test_declared_charset_for_bytes(self):
        raw = "<p>café</p>".encode("latin-1")
        assert convert_html_to_text(raw, "iso-8859-1") == "café"

    def test_meta_charset_for_bytes(self):
        raw = b'<html><head><meta charset="windows-1252"></head><body><p>caf\xe9</p></body></html>'
        result = HtmlTextConverter().convert(raw)
        assert result.text == "café"
        assert result.charset.source == CharsetSource.META

    def test_declared_beats_meta(self):
        raw = '<meta charset="koi8-r"><p>日本</p>'.encode("utf-8")
        assert convert_html_to_text(raw, "utf-8") == "日本"

    def test_unknown_charset_recovered(self):
        result = HtmlTextConverter().convert(b"<p>Hello</p>", "x-klingon")
        assert result.text == "Hello"
        assert ErrorCode.W_CHARSET_UNKNOWN.value in result.warnings
        assert result.charset.fallback_used is True

    def test_decode_failure_recovered(self):
        result = HtmlTextConverter().convert("<p>Grüße</p>".encode("utf-8"), "ascii")
        assert result.text == "Grüße"
        assert ErrorCode.W_CHARSET_DECODE_FAILED.value in result.warnings

    def test_extract_text_with_charset_detection(self):
        raw = '<meta http-equiv="Content-Type" content="text/html; charset=iso-8859-1"><p>\xe0 bient\xf4t</p>'
        assert extract_text_with_charset_detection(raw.encode("latin-1")) == "à bientôt"


class TestFallbackPath:
    def test_forced_by_config(self, fallback_config):
        result = HtmlTextConverter(fallback_config).convert("<p>Hello <b>World</b></p>")
        assert result.path == ConversionPath.FALLBACK
        assert result.text == "Hello **World**"
        assert result.warnings == []

    def test_parse_unavailable(self, monkeypatch, caplog):
        monkeypatch.setattr("mailtext.converter.walk", _raise_parse_unavailable)
        with caplog.at_level(logging.WARNING, logger="mailtext"):
            result = HtmlTextConverter().convert("<p>Hello</p>")
        assert result.path == ConversionPath.FALLBACK
        assert result.text == "Hello"
        assert result.warnings == [ErrorCode.W_HTML_PARSE_UNAVAILABLE.value]
        assert "action=fallback" in caplog.text

    def test_walker_failure(self, monkeypatch):
        monkeypatch.setattr("mailtext.converter.walk", _raise_runtime)
        result = HtmlTextConverter().convert("<p>Hello</p>")
        assert result.path == ConversionPath.FALLBACK
        assert result.text == "Hello"
        assert result.error_details[0].code == ErrorCode.W_WALKER_FAILED
        assert result.error_details[0].stage == "walk"

    def test_passthrough_when_everything_fails(self, monkeypatch, caplog):
        monkeypatch.setattr("mailtext.converter.walk", _raise_runtime)
        monkeypatch.setattr("mailtext.converter.fallback_convert", _raise_runtime)
        with caplog.at_level(logging.ERROR, logger="mailtext"):
            result = HtmlTextConverter().convert("<p>Hello</p>")
        assert result.path == ConversionPath.PASSTHROUGH
        assert result.text == "<p>Hello</p>"
        assert ErrorCode.E_CONVERSION_FAILED.value in result.warnings
        assert result.error_details[-1].recoverable is False
        assert ErrorCode.E_CONVERSION_FAILED.value in caplog.text

    def test_public_function_never_raises_on_failures(self, monkeypatch):
        monkeypatch.setattr("mailtext.converter.walk", _raise_runtime)
        monkeypatch.setattr("mailtext.converter.fallback_convert", _raise_runtime)
        assert convert_html_to_text("<b>x</b>") == "<b>x</b>"


class TestDegenerateOutput:
    def test_repeated_images_kept(self):
        html = "<p><img src='a.png'></p>" * 10
        result = HtmlTextConverter().convert(html)
        assert result.text.count(f"{IMG} [Image]") == 10
        assert ErrorCode.W_OUTPUT_DEGENERATE.value in result.warnings

    def test_stray_emphasis_does_not_resurface(self, fallback_config):
        result = HtmlTextConverter(fallback_config).convert("<img>" + "\n<i>" * 30)
        assert "*" not in result.text
        assert result.text == f"{IMG} [Image]"

    def test_single_image_not_degenerate(self):
        result = HtmlTextConverter().convert("<img src='a.png'>")
        assert result.text == f"{IMG} [Image]"
        assert result.warnings == []


class TestTotality:
    @pytest.mark.parametrize(
        "html",
        [
            "",
            "just plain text",
            "<",
            "<<<>>>",
            "</p></p></div>",
            "<a href=",
            "<p><b><i>unclosed",
            "&#",
            "&#99999999999999999999;",
            "<!--",
            "<![CDATA[x",
            "<script>",
            "<table><td><tr><li>mixed</table>",
            "\x00\x01\x02",
            f"{PRE_OPEN}{PRE_OPEN}{PRE_CLOSE}",
            "<div>" * 3000 + "deep",
            b"\xff\xfe\x00<p>bytes</p>",
        ],
    )
    def test_always_returns_string(self, html):
        assert isinstance(convert_html_to_text(html), str)

    def test_empty_input(self):
        assert convert_html_to_text("") == ""

    def test_plain_text_input(self):
        assert convert_html_to_text("just plain text") == "just plain text"


class TestLogging:
    def test_summary_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="mailtext"):
            convert_html_to_text("<p>secret body</p>")
        assert "path=tree_walk" in caplog.text
        assert "secret body" not in caplog.text

    def test_previews_only_with_sample_logging(self, caplog):
        cfg = HtmlTextConfig(log_sample_data=True)
        with caplog.at_level(logging.DEBUG, logger="mailtext"):
            convert_html_to_text("<p>sample body</p>", config=cfg)
        assert "sample body" in caplog.text
