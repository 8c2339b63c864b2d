"""
Per-page artist deduplication.

Policy: one row per distinct artist name within a single page's batch.
The key is the lower-cased, whitespace-collapsed artist name, so role,
date and venue distinctions are discarded (first occurrence wins).

Names that are probably the same artist but differ in spelling are not
merged. They are reported as near matches (rapidfuzz token_sort_ratio)
so the policy can be reviewed.
"""

import re
from typing import Iterable, Optional

from rapidfuzz import fuzz

from .models import DedupeResult, DuplicateMatch, NearMatch, NormalizedRow
from .text import normalize_key


# Similarity (0-100) at which two retained names are flagged
NEAR_MATCH_THRESHOLD = 90.0


def dedupe_key(artist_name: Optional[str]) -> str:
    """Dedup key: lower-cased, whitespace-collapsed artist name."""
    return normalize_key(artist_name)


def normalize_artist(name: str) -> str:
    """Loose form used only for near-match scoring."""
    name = normalize_key(name)
    if name.startswith("the "):
        name = name[4:]
    name = re.sub(r"[^\w\s]", "", name)
    return re.sub(r"\s+", " ", name).strip()


def find_near_matches(
    names: list[str], threshold: float = NEAR_MATCH_THRESHOLD
) -> list[NearMatch]:
    """Pairs of names scoring at or above threshold."""
    matches: list[NearMatch] = []
    loose = [normalize_artist(n) for n in names]

    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            if not loose[i] or not loose[j]:
                continue
            score = fuzz.token_sort_ratio(loose[i], loose[j])
            if score >= threshold:
                matches.append(NearMatch(first=names[i], second=names[j], score=score))

    return matches


def deduplicate(
    rows: Iterable[NormalizedRow],
    near_match_threshold: Optional[float] = NEAR_MATCH_THRESHOLD,
) -> DedupeResult:
    """
    Deduplicate one page's rows by artist name.

    Args:
        rows: Normalized rows in page order
        near_match_threshold: Score for near-match reporting, or None to skip

    Returns:
        DedupeResult with retained rows and audit trail
    """
    rows = list(rows)
    kept: dict[str, NormalizedRow] = {}
    audit_trail: list[DuplicateMatch] = []

    for row in rows:
        key = dedupe_key(row.artist_name)
        first = kept.get(key)
        if first is None:
            kept[key] = row
            continue

        audit_trail.append(DuplicateMatch(
            key=key,
            kept_artist=first.artist_name,
            dropped_artist=row.artist_name,
            kept_source_url=first.source_url,
            dropped_source_url=row.source_url,
            reason=f"Dropped {row.role.value} '{row.artist_name}' (kept {first.role.value} row)",
        ))

    retained = list(kept.values())
    near_matches: list[NearMatch] = []
    if near_match_threshold is not None:
        near_matches = find_near_matches([r.artist_name for r in retained], near_match_threshold)

    return DedupeResult(
        rows=retained,
        original_count=len(rows),
        duplicates_removed=len(rows) - len(retained),
        audit_trail=audit_trail,
        near_matches=near_matches,
    )


def dedupe_rows(rows: Iterable[NormalizedRow]) -> list[NormalizedRow]:
    """Deduplicated rows only, without near-match scoring."""
    return deduplicate(rows, near_match_threshold=None).rows


def format_audit_summary(result: DedupeResult) -> str:
    """Format audit trail as human-readable summary."""
    if not result.audit_trail and not result.near_matches:
        return "No duplicates found."

    lines = [
        "Deduplication Summary:",
        f"  Original rows: {result.original_count}",
        f"  Duplicates removed: {result.duplicates_removed}",
        f"  Final rows: {len(result.rows)}",
        f"  Dedup rate: {result.dedup_rate:.1f}%",
    ]

    if result.audit_trail:
        lines.extend(["", "Dropped rows:"])
        for match in result.audit_trail:
            lines.append(f"  - {match.reason}")

    if result.near_matches:
        lines.extend(["", "Possible same artist (not merged):"])
        for near in result.near_matches:
            lines.append(f"  - '{near.first}' ~ '{near.second}' ({near.score:.0f})")

    return "\n".join(lines)
