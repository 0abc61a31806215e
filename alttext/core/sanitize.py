"""Sanitize provider text before it is stored as alt text."""

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_alt_text(raw: str) -> str:
    """
    Return a single-line plain-text version of `raw`.

    Strips markup and leftover angle brackets, percent-encoded octets and control characters,
    collapses whitespace runs to one space, and trims. Surrounding quotes that models like to
    add ("A red bicycle") are removed. May return an empty string.
    """
    text = html.unescape(raw)
    text = _TAG_RE.sub("", text)
    text = text.replace("<", "").replace(">", "")
    text = _OCTET_RE.sub("", text)
    # Newlines and tabs become spaces before control characters are dropped
    text = _WHITESPACE_RE.sub(" ", text)
    text = _CONTROL_RE.sub("", text)
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    return text
