"""Ordered extraction stages with fall-through on empty results."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

Stage = Callable[..., Awaitable[Sequence[T]]]


def stage_name(stage: Callable[..., Any]) -> str:
    return getattr(stage, "__name__", type(stage).__name__)


@dataclass
class StageOutcome(Generic[T]):
    """What a StageChain run produced and which stages it tried."""

    items: list[T] = field(default_factory=list)
    stage: Optional[str] = None  # stage that produced items, if any
    attempted: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


class StageChain(Generic[T]):
    """Run extraction stages in order until one yields items.

    A stage that returns nothing or raises is logged and the next stage
    runs. The chain itself never raises.
    """

    def __init__(self, *stages: Stage, name: str = "stage_chain"):
        """Initialize chain with ordered stages.

        Args:
            *stages: Async callables returning a (possibly empty) sequence
            name: Label used in log events
        """
        self.stages = stages
        self.name = name

    @property
    def stage_names(self) -> list[str]:
        return [stage_name(s) for s in self.stages]

    async def run(self, *args: Any, **kwargs: Any) -> StageOutcome[T]:
        """Run stages in order until one produces items.

        Args:
            *args: Positional arguments passed to each stage
            **kwargs: Keyword arguments passed to each stage

        Returns:
            StageOutcome with the first non-empty result, or empty items
        """
        outcome: StageOutcome[T] = StageOutcome()

        for i, stage in enumerate(self.stages):
            label = stage_name(stage)
            outcome.attempted.append(label)
            try:
                items = list(await stage(*args, **kwargs) or [])
            except Exception as e:
                outcome.errors[label] = str(e)
                logger.warning(
                    "stage_failed",
                    chain=self.name,
                    stage=label,
                    attempt=i + 1,
                    total_stages=len(self.stages),
                    error=str(e),
                )
                continue

            if items:
                if i > 0:
                    logger.info(
                        "fallback_stage_used",
                        chain=self.name,
                        stage=label,
                        attempt=i + 1,
                        total_stages=len(self.stages),
                    )
                outcome.items = items
                outcome.stage = label
                return outcome

            logger.debug("stage_empty", chain=self.name, stage=label)

        logger.warning(
            "stage_chain_exhausted",
            chain=self.name,
            stages=outcome.attempted,
            errors=outcome.errors or None,
        )
        return outcome
