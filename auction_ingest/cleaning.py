"""Description cleanup: lot/item code stripping and item naming."""

from __future__ import annotations

import re

# Lot codes printed between the description and the price, e.g.
# "18488 17" or "131811 65 G2CG2C".
MAX_CODE_TOKENS = 4
_CODE_TOKEN_RE = re.compile(r"^[0-9A-Z]{1,8}$")

_EMBEDDED_ID_RE = re.compile(r"\b\d{5,6}\s+\d{1,3}\s+[A-Z0-9]+\b")
_LEADING_ID_RE = re.compile(r"^\d+\s+")
_TRAILING_ID_RE = re.compile(r"\s+\d{4,}$")
_FILLER_RE = re.compile(r"-{3,}")
_WS_RE = re.compile(r"\s+")

ITEM_NAME_MAX_CHARS = 60
UNKNOWN_ITEM_NAME = "Unknown Item"


def strip_trailing_codes(fragment: str) -> str:
    """Drop a trailing run of 1-4 uppercase/digit code tokens.

    The run must open with a token of at least two characters and must
    contain at least one digit, so all-caps words such as
    ``"STERLING SILVER"`` survive.
    """
    tokens = fragment.split()
    run = 0
    while (
        run < MAX_CODE_TOKENS
        and run < len(tokens)
        and _CODE_TOKEN_RE.match(tokens[len(tokens) - 1 - run])
    ):
        run += 1
    while run and len(tokens[len(tokens) - run]) < 2:
        run -= 1

    codes = tokens[len(tokens) - run :]
    if not codes or not any(ch.isdigit() for token in codes for ch in token):
        return " ".join(tokens)
    return " ".join(tokens[: len(tokens) - run])


def clean_description(description: str) -> str:
    """Remove embedded id tokens, filler dashes and redundant whitespace."""
    description = _EMBEDDED_ID_RE.sub("", description)
    description = _FILLER_RE.sub(" ", description)
    description = _WS_RE.sub(" ", description).strip()
    description = _LEADING_ID_RE.sub("", description)
    description = _TRAILING_ID_RE.sub("", description)
    return description.strip()


def generate_item_name(description: str) -> str:
    """Short title-cased display name derived from a lot description."""
    name = description
    if len(name) > ITEM_NAME_MAX_CHARS:
        head = description[:ITEM_NAME_MAX_CHARS]
        dot = head.find(".")
        name = description[:dot] if dot > 0 else head

    name = _WS_RE.sub(" ", name).strip()
    name = _LEADING_ID_RE.sub("", name)
    if not name:
        return UNKNOWN_ITEM_NAME

    words = name.lower().split()
    return " ".join(word[0].upper() + word[1:] for word in words)
