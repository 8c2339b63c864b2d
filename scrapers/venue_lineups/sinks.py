"""
Output sinks for normalized rows.

Rows are appended as they are produced; nothing is buffered across pages.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence, Union

import structlog

from .models import NormalizedRow

logger = structlog.get_logger(__name__)


class OutputSink(ABC):
    """Append-only destination for NormalizedRows."""

    @abstractmethod
    async def write(self, rows: Sequence[NormalizedRow]) -> None:
        """Append rows."""


class JsonLinesSink(OutputSink):
    """Write one camelCase JSON object per line."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.count = 0
        self._lock = asyncio.Lock()

    async def write(self, rows: Sequence[NormalizedRow]) -> None:
        if not rows:
            return
        lines = "".join(row.model_dump_json(by_alias=True) + "\n" for row in rows)
        # Workers share one file
        async with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(lines)
            self.count += len(rows)
        logger.debug("rows_written", path=str(self.path), rows=len(rows))


class MemorySink(OutputSink):
    """Collect rows in a list."""

    def __init__(self):
        self.rows: list[NormalizedRow] = []

    async def write(self, rows: Sequence[NormalizedRow]) -> None:
        self.rows.extend(rows)

    @property
    def count(self) -> int:
        return len(self.rows)
