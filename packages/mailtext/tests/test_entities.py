"""Tests for mailtext.entities."""

from __future__ import annotations

import pytest

from mailtext.entities import ENTITY_TABLE, decode_entities


class TestNamedEntities:
    @pytest.mark.parametrize(
        "encoded, expected",
        [
            ("&amp;", "&"),
            ("&lt;", "<"),
            ("&gt;", ">"),
            ("&quot;", '"'),
            ("&apos;", "'"),
            ("&hellip;", "..."),
            ("&alpha;", "α"),
            ("&Omega;", "Ω"),
            ("&euro;", "€"),
            ("&copy;", "©"),
            ("&mdash;", "—"),
            ("&rarr;", "→"),
        ],
    )
    def test_known_names(self, encoded, expected):
        assert decode_entities(encoded) == expected

    def test_every_table_entry_decodes(self):
        for name, char in ENTITY_TABLE.items():
            assert decode_entities(f"&{name};") == char.replace("\xa0", " ")

    def test_nbsp_becomes_plain_space(self):
        assert decode_entities("a&nbsp;b") == "a b"
        assert decode_entities("a\xa0b") == "a b"

    def test_unknown_name_left_as_written(self):
        assert decode_entities("&bogus; &amp") == "&bogus; &amp"

    def test_names_are_case_sensitive(self):
        assert decode_entities("&AMP;") == "&AMP;"

    def test_single_pass(self):
        assert decode_entities("&amp;lt;") == "&lt;"

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ENTITY_TABLE["amp"] = "x"  # type: ignore[index]


class TestNumericEntities:
    def test_decimal_printable_ascii(self):
        assert decode_entities("&#65;") == "A"

    def test_hex_printable_ascii(self):
        assert decode_entities("&#x41;&#X42;") == "AB"

    def test_outside_ascii_left_undecoded(self):
        assert decode_entities("&#9731;") == "&#9731;"
        assert decode_entities("&#x263A;") == "&#x263A;"

    def test_control_characters_left_undecoded(self):
        assert decode_entities("&#10;") == "&#10;"
        assert decode_entities("&#127;") == "&#127;"

    def test_full_unicode_when_enabled(self):
        assert decode_entities("&#9731;", ascii_only=False) == "☃"
        assert decode_entities("&#x1F600;", ascii_only=False) == "\U0001f600"

    def test_invalid_code_points_stay_even_when_enabled(self):
        assert decode_entities("&#xD800;", ascii_only=False) == "&#xD800;"
        assert decode_entities("&#99999999;", ascii_only=False) == "&#99999999;"


class TestEdgeCases:
    def test_empty(self):
        assert decode_entities("") == ""

    def test_text_without_entities_unchanged(self):
        assert decode_entities("plain text & more") == "plain text & more"
