"""
Lineup block extraction from a page's visible text lines.

Finds a start anchor, collects the lines that follow until a stop marker,
then splits and filters them into ordered candidate names.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .splitter import split
from .text import collapse_whitespace, normalize_key


BOILERPLATE = re.compile(
    r"^(tickets|event details|details|venue info|time:|doors|show:|ages|admission|onsale)",
    re.IGNORECASE,
)
WITH_MARKER = re.compile(r"\b(with|featuring|feat\.?|presented by)\b", re.IGNORECASE)
DOMAIN_LINE = re.compile(r"^www\.", re.IGNORECASE)
CLOCK_TIME = re.compile(r"[0-9]:[0-9]{2}\s*(am|pm)", re.IGNORECASE)
LEADING_DASH = re.compile(r"^[–-]\s*")
LEADING_WITH = re.compile(r"^(?:with|featuring|feat\.?|w/)\s+", re.IGNORECASE)
PRESENTS_MARKER = re.compile(r"\bpresents\b", re.IGNORECASE)


@dataclass
class LineupOptions:
    """Per-site knobs for lineup extraction."""

    start_pattern: Optional[re.Pattern] = PRESENTS_MARKER  # None disables it
    start_text: Optional[str] = None  # e.g. the page heading
    anchor_scan_lines: int = 40  # lines searched for a with/featuring anchor
    max_scan_lines: Optional[int] = None  # window after the anchor
    max_line_length: int = 80
    max_candidates: int = 8
    max_words: int = 8
    scan_without_anchor: bool = False
    stop_pattern: re.Pattern = BOILERPLATE


def find_anchor(lines: Sequence[str], options: LineupOptions) -> Optional[int]:
    """Index of the line the lineup block starts after, or None."""
    if options.start_pattern is not None:
        for i, line in enumerate(lines):
            if options.start_pattern.search(line):
                return i

    if options.start_text:
        for i, line in enumerate(lines):
            if options.start_text in line:
                return i

    for i, line in enumerate(lines[: options.anchor_scan_lines]):
        if WITH_MARKER.search(line):
            return i

    return None


def _collect_after(lines: Sequence[str], anchor: int, options: LineupOptions) -> list[str]:
    end = len(lines)
    if options.max_scan_lines is not None:
        end = min(end, anchor + options.max_scan_lines)

    collected: list[str] = []
    for line in lines[anchor + 1:end]:
        if not line:
            continue
        if DOMAIN_LINE.match(line) or options.stop_pattern.match(line):
            break
        if len(line) > options.max_line_length:
            break
        collected.append(line)
        if len(collected) >= options.max_candidates:
            break
    return collected


def _scan_head(lines: Sequence[str], options: LineupOptions) -> list[str]:
    collected: list[str] = []
    for line in lines[: options.anchor_scan_lines]:
        if not line:
            continue
        if options.stop_pattern.match(line):
            break
        if WITH_MARKER.search(line) or "," in line:
            collected.append(line)
        if len(collected) >= options.max_candidates:
            break
    return collected


def _normalize_line(line: str) -> str:
    return LEADING_DASH.sub("", collapse_whitespace(line)).strip()


def names_from_lines(block: Sequence[str], options: LineupOptions) -> list[str]:
    """Split collected lines into names, dropping noise fragments."""
    names: list[str] = []
    seen: set[str] = set()

    for raw in block:
        line = _normalize_line(raw)
        line = LEADING_WITH.sub("", line)
        if not line:
            continue

        for part in split(line):
            part = _normalize_line(part)
            if not part:
                continue
            if options.stop_pattern.match(part):
                continue
            if CLOCK_TIME.search(part):
                continue
            if len(part.split()) > options.max_words:
                continue

            key = normalize_key(part)
            if key in seen:
                continue
            seen.add(key)
            names.append(part)

    return names


def extract(lines: Sequence[str], options: Optional[LineupOptions] = None) -> list[str]:
    """
    Extract ordered candidate artist names from visible text lines.

    Args:
        lines: Visible text lines, trimmed, blanks removed
        options: Site-specific anchor and stop settings

    Returns:
        De-duplicated candidate names in page order
    """
    options = options or LineupOptions()
    anchor = find_anchor(lines, options)

    if anchor is not None:
        block = _collect_after(lines, anchor, options)
    elif options.scan_without_anchor:
        block = _scan_head(lines, options)
    else:
        block = []

    return names_from_lines(block, options)


def assign_lineup(
    names: Sequence[str], calendar_title: Optional[str] = None
) -> tuple[Optional[str], list[str]]:
    """
    Turn candidate names into (headliner, supports).

    A calendar-supplied title wins as headliner; it is then removed from
    the supports.
    """
    if calendar_title:
        title_key = normalize_key(calendar_title)
        return calendar_title, [n for n in names if normalize_key(n) != title_key]

    if not names:
        return None, []
    return names[0], list(names[1:])
