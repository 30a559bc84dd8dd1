"""Nominal size parsing for take-off size tokens.

Grammar (case-insensitive, whitespace between tokens ignored):

    size     := SPECIAL | REDUCER | plain
    SPECIAL  := "NOSIZE" | "HALF" | <empty>
    REDUCER  := plain "X" plain
    plain    := FRACTION | NUMBER
    FRACTION := NUMBER "/" NUMBER
    NUMBER   := digit+

Anything else (decimals, signs, stray letters) is unparseable and yields
``diameter=None``. Parsing never raises.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from mtocalc.models import ParsedSize

_DIGITS = frozenset("0123456789")
_SPECIAL_VALUES: dict[str, float | None] = {
    "": None,
    "NOSIZE": None,
    "HALF": 0.5,
}


class TokenKind(Enum):
    NUMBER = "number"
    SLASH = "slash"
    REDUCER_X = "x"
    INVALID = "invalid"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str


def tokenize(text: str) -> list[Token]:
    """Split an uppercased size token into NUMBER, SLASH and X tokens.

    Letters other than a lone ``X`` and any other character become
    INVALID tokens so the productions can reject them.
    """
    tokens: list[Token] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char.isspace():
            i += 1
        elif char in _DIGITS:
            start = i
            while i < len(text) and text[i] in _DIGITS:
                i += 1
            tokens.append(Token(TokenKind.NUMBER, text[start:i]))
        elif char == "/":
            tokens.append(Token(TokenKind.SLASH, char))
            i += 1
        elif char == "X":
            tokens.append(Token(TokenKind.REDUCER_X, char))
            i += 1
        else:
            tokens.append(Token(TokenKind.INVALID, char))
            i += 1
    return tokens


def _parse_plain(tokens: list[Token]) -> float | None:
    """plain := NUMBER | NUMBER "/" NUMBER"""
    kinds = [token.kind for token in tokens]

    try:
        if kinds == [TokenKind.NUMBER]:
            value = float(int(tokens[0].text))
        elif kinds == [TokenKind.NUMBER, TokenKind.SLASH, TokenKind.NUMBER]:
            denominator = int(tokens[2].text)
            if denominator == 0:
                return None
            value = int(tokens[0].text) / denominator
        else:
            return None
    except (OverflowError, ValueError):
        # Digit runs too long for int/float conversion
        return None

    return value if math.isfinite(value) else None


def parse_size(text: str | None) -> ParsedSize:
    """Parse a freeform size token into a diameter plus reducer metadata.

    Args:
        text: Raw size text, e.g. "2", "1/2", "2X4", "HALF", "NOSIZE"

    Returns:
        ParsedSize with the raw text preserved; unparseable input yields
        ``diameter=None``
    """
    raw = text if text is not None else ""
    candidate = raw.strip().upper()

    if candidate in _SPECIAL_VALUES:
        return ParsedSize(diameter=_SPECIAL_VALUES[candidate], raw_text=raw)

    tokens = tokenize(candidate)
    separators = [i for i, token in enumerate(tokens) if token.kind is TokenKind.REDUCER_X]

    if not separators:
        return ParsedSize(diameter=_parse_plain(tokens), raw_text=raw)

    # Reducer: exactly two plain sides, otherwise the whole token is invalid
    if len(separators) != 1:
        return ParsedSize(diameter=None, raw_text=raw)

    split = separators[0]
    first = _parse_plain(tokens[:split])
    second = _parse_plain(tokens[split + 1 :])
    if first is None or second is None:
        return ParsedSize(diameter=None, raw_text=raw)

    return ParsedSize(
        # Halve before adding so two large sides cannot overflow
        diameter=first / 2 + second / 2,
        is_reducer=True,
        second_diameter=second,
        raw_text=raw,
    )
