"""Data models for pycpu."""

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass


def _clamp_percent(value: float) -> float:
    usage = float(value)
    if not math.isfinite(usage):
        return 0.0
    return min(max(usage, 0.0), 100.0)


@dataclass(slots=True, frozen=True)
class CoreSample:
    """Immutable usage reading for a single CPU core."""

    id: int  # 1-based core index
    usage: float  # 0.0 - 100.0


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Per-core usage readings taken at one instant, ordered by core id."""

    cores: tuple[CoreSample, ...] = ()

    @classmethod
    def from_percents(cls, percents: Iterable[float]) -> "Snapshot":
        """
        Build a snapshot from per-core percentages in core order.

        Ids are assigned 1..n and usage is clamped into [0, 100], since
        some platforms report small overshoots right after a counter wrap.
        Non-finite readings count as 0.0.
        """
        return cls(
            cores=tuple(
                CoreSample(id=index, usage=_clamp_percent(usage))
                for index, usage in enumerate(percents, start=1)
            )
        )

    def __len__(self) -> int:
        return len(self.cores)

    def __iter__(self) -> Iterator[CoreSample]:
        return iter(self.cores)


EMPTY_SNAPSHOT = Snapshot()
