"""Character entity decoding shared by both converters.

``ENTITY_TABLE`` is a read-only mapping built once at import time.
Numeric references are decoded only inside the printable ASCII range by
default; anything outside it is left exactly as written.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

ENTITY_TABLE: Mapping[str, str] = MappingProxyType(
    {
        # XML core
        "amp": "&",
        "lt": "<",
        "gt": ">",
        "quot": '"',
        "apos": "'",
        # Spaces
        "nbsp": " ",
        "ensp": " ",
        "emsp": " ",
        "thinsp": " ",
        # Latin-1 punctuation and symbols
        "copy": "©",
        "reg": "®",
        "trade": "™",
        "sect": "§",
        "para": "¶",
        "laquo": "«",
        "raquo": "»",
        "iexcl": "¡",
        "iquest": "¿",
        "shy": "",
        "macr": "¯",
        "acute": "´",
        "cedil": "¸",
        "uml": "¨",
        "ordf": "ª",
        "ordm": "º",
        "not": "¬",
        "brvbar": "¦",
        # Typographic punctuation
        "hellip": "...",
        "mdash": "—",
        "ndash": "–",
        "lsquo": "‘",
        "rsquo": "’",
        "sbquo": "‚",
        "ldquo": "“",
        "rdquo": "”",
        "bdquo": "„",
        "lsaquo": "‹",
        "rsaquo": "›",
        "bull": "•",
        "middot": "·",
        "prime": "′",
        "Prime": "″",
        "dagger": "†",
        "Dagger": "‡",
        "permil": "‰",
        "oline": "‾",
        "frasl": "⁄",
        # Mathematics
        "deg": "°",
        "plusmn": "±",
        "times": "×",
        "divide": "÷",
        "minus": "−",
        "lowast": "∗",
        "micro": "µ",
        "frac12": "½",
        "frac14": "¼",
        "frac34": "¾",
        "sup1": "¹",
        "sup2": "²",
        "sup3": "³",
        "infin": "∞",
        "sum": "∑",
        "prod": "∏",
        "int": "∫",
        "part": "∂",
        "nabla": "∇",
        "radic": "√",
        "prop": "∝",
        "isin": "∈",
        "notin": "∉",
        "ni": "∋",
        "cap": "∩",
        "cup": "∪",
        "sub": "⊂",
        "sup": "⊃",
        "sube": "⊆",
        "supe": "⊇",
        "oplus": "⊕",
        "otimes": "⊗",
        "perp": "⊥",
        "sdot": "⋅",
        "ne": "≠",
        "le": "≤",
        "ge": "≥",
        "equiv": "≡",
        "asymp": "≈",
        "sim": "∼",
        "forall": "∀",
        "exist": "∃",
        "empty": "∅",
        "and": "∧",
        "or": "∨",
        "ang": "∠",
        "there4": "∴",
        # Greek, upper case
        "Alpha": "Α",
        "Beta": "Β",
        "Gamma": "Γ",
        "Delta": "Δ",
        "Epsilon": "Ε",
        "Zeta": "Ζ",
        "Eta": "Η",
        "Theta": "Θ",
        "Iota": "Ι",
        "Kappa": "Κ",
        "Lambda": "Λ",
        "Mu": "Μ",
        "Nu": "Ν",
        "Xi": "Ξ",
        "Omicron": "Ο",
        "Pi": "Π",
        "Rho": "Ρ",
        "Sigma": "Σ",
        "Tau": "Τ",
        "Upsilon": "Υ",
        "Phi": "Φ",
        "Chi": "Χ",
        "Psi": "Ψ",
        "Omega": "Ω",
        # Greek, lower case
        "alpha": "α",
        "beta": "β",
        "gamma": "γ",
        "delta": "δ",
        "epsilon": "ε",
        "zeta": "ζ",
        "eta": "η",
        "theta": "θ",
        "iota": "ι",
        "kappa": "κ",
        "lambda": "λ",
        "mu": "μ",
        "nu": "ν",
        "xi": "ξ",
        "omicron": "ο",
        "pi": "π",
        "rho": "ρ",
        "sigmaf": "ς",
        "sigma": "σ",
        "tau": "τ",
        "upsilon": "υ",
        "phi": "φ",
        "chi": "χ",
        "psi": "ψ",
        "omega": "ω",
        "thetasym": "ϑ",
        "upsih": "ϒ",
        "piv": "ϖ",
        # Currency
        "euro": "€",
        "pound": "£",
        "yen": "¥",
        "cent": "¢",
        "curren": "¤",
        # Arrows
        "larr": "←",
        "uarr": "↑",
        "rarr": "→",
        "darr": "↓",
        "harr": "↔",
        "crarr": "↵",
        "lArr": "⇐",
        "uArr": "⇑",
        "rArr": "⇒",
        "dArr": "⇓",
        "hArr": "⇔",
        # Misc symbols
        "spades": "♠",
        "clubs": "♣",
        "hearts": "♥",
        "diams": "♦",
        "loz": "◊",
        "weierp": "℘",
        "image": "ℑ",
        "real": "ℜ",
        "alefsym": "ℵ",
    }
)

PRINTABLE_ASCII = range(32, 127)

_ENTITY_RE = re.compile(
    r"&(?:#(?P<dec>[0-9]+)|#[xX](?P<hex>[0-9a-fA-F]+)|(?P<name>[A-Za-z][A-Za-z0-9]*));"
)


def _code_point_to_char(code: int, ascii_only: bool) -> str | None:
    if ascii_only:
        return chr(code) if code in PRINTABLE_ASCII else None
    if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF or code < 32:
        return None
    return chr(code)


def decode_entities(text: str, *, ascii_only: bool = True) -> str:
    """Replace character references in *text* with their characters.

    Named references are looked up case-sensitively in ``ENTITY_TABLE``;
    unknown names stay as written.  Numeric references (decimal or hex)
    decode only inside the printable ASCII range unless *ascii_only* is
    False.  The text is scanned once, so ``&amp;lt;`` becomes ``&lt;``.
    Non-breaking spaces, literal or escaped, come out as plain spaces.
    """
    if not text:
        return ""

    def _replace(match: re.Match[str]) -> str:
        name = match.group("name")
        if name is not None:
            return ENTITY_TABLE.get(name, match.group(0))
        digits = match.group("dec")
        code = int(digits) if digits is not None else int(match.group("hex"), 16)
        char = _code_point_to_char(code, ascii_only)
        return char if char is not None else match.group(0)

    if "&" in text:
        text = _ENTITY_RE.sub(_replace, text)
    return text.replace("\xa0", " ")
