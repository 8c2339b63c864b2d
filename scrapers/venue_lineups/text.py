"""
Artist name cleaning.

clean() strips, in order:
- "X Presents:" / "X Pres.:" prefixes
- "@ 9pm" / "at 9:30 pm" time fragments
- trailing " - tour descriptor" segments
- parenthetical asides
then normalizes quotes, whitespace and edge punctuation.
"""

import re
from typing import Optional


PRESENTER_PREFIX = re.compile(r"^[^:]+\s+(?:presents?|pres\.)\s*:\s*", re.IGNORECASE)
AT_SIGN_TIME = re.compile(r"@\s*\d{1,2}(?::\d{2})?\s*(?:am|pm)?", re.IGNORECASE)
AT_WORD_TIME = re.compile(r"\bat\s+\d{1,2}(?::\d{2})?\s*(?:am|pm)?\b", re.IGNORECASE)
# Whitespace before the dash keeps hyphenated names like "Jay-Z" intact
TRAILING_DESCRIPTOR = re.compile(r"\s+[-–—]\s*[^,()]*$")
PARENTHETICAL = re.compile(r"\([^()]*\)")
SINGLE_QUOTES = re.compile(r"[‘’‚′]")
DOUBLE_QUOTES = re.compile(r"[“”„″]")
WHITESPACE = re.compile(r"[\s\u00a0]+")
EDGE_PUNCTUATION = re.compile(r"^[\s,;:|\-–—]+|[\s,;:|\-–—]+$")

# Title noise removed before a compound headliner is split
TITLE_TIME_TAIL = re.compile(r"\s*@\s*\d.*$")
TITLE_PARENTHETICAL = re.compile(r"\s*\(.*?\)\s*")


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace (including NBSP) and trim."""
    if not text:
        return ""
    return WHITESPACE.sub(" ", text).strip()


def normalize_key(text: Optional[str]) -> str:
    """Lower-cased, whitespace-collapsed comparison key."""
    return collapse_whitespace(text).lower()


def strip_title_noise(title: Optional[str]) -> str:
    """Drop a trailing "@ 8pm ..." tail and parentheticals from an event title."""
    if not title:
        return ""
    title = TITLE_TIME_TAIL.sub("", title)
    title = TITLE_PARENTHETICAL.sub(" ", title)
    return collapse_whitespace(title)


def _clean_once(value: str) -> str:
    value = PRESENTER_PREFIX.sub("", value)
    value = AT_SIGN_TIME.sub("", value)
    value = AT_WORD_TIME.sub("", value)
    value = TRAILING_DESCRIPTOR.sub("", value)
    value = PARENTHETICAL.sub("", value)
    value = SINGLE_QUOTES.sub("'", value)
    value = DOUBLE_QUOTES.sub('"', value)
    value = WHITESPACE.sub(" ", value).strip()
    return EDGE_PUNCTUATION.sub("", value)


def clean(raw: Optional[str]) -> Optional[str]:
    """
    Clean a single artist name.

    Each step can expose input for an earlier one (e.g. a parenthetical
    hiding a presenter prefix), so the pipeline is repeated until the value
    stops changing. Every pass only removes or swaps characters, so this
    terminates.

    Returns:
        Cleaned name, or None if nothing is left
    """
    if raw is None:
        return None

    value = str(raw)
    while True:
        cleaned = _clean_once(value)
        if cleaned == value:
            break
        value = cleaned

    return value or None
