"""Split compound lineup strings ("A w/ B, C & D") into individual names."""

import re
from typing import Optional


SPLIT_PATTERN = re.compile(
    r",|\s+with\s+|\s+w/\s*|\s+feat\.?\s+|\s+featuring\s+|\s+&\s+|\s+and\s+|\s+/\s+|\s+\+\s+",
    re.IGNORECASE,
)


def split(compound: Optional[str], pattern: re.Pattern = SPLIT_PATTERN) -> list[str]:
    """
    Split a compound artist string into ordered, trimmed parts.

    The first part is conventionally the most headliner-like; callers decide
    roles. Empty parts are dropped.
    """
    if not compound:
        return []
    return [part.strip() for part in pattern.split(compound) if part and part.strip()]
