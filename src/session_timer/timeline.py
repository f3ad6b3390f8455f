"""Pure timeline math mapping planned durations and elapsed seconds to view state.

An activity's window is ``[cumulative_start, cumulative_end)``: landing exactly
on a boundary makes the next activity current and marks the previous one done.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import accumulate
from typing import Sequence

from .models import Activity


@dataclass(frozen=True)
class TimelineView:
    """Derived countdown state for one elapsed point."""
    total_seconds: int
    elapsed_seconds: int
    current_index: int
    remaining_seconds: int
    progress: float
    is_complete: bool
    completed: tuple[bool, ...]

    @property
    def has_current(self) -> bool:
        return bool(self.completed)

    @property
    def progress_percent(self) -> float:
        return progress_percent(self.progress)


def total_seconds(durations: Sequence[int]) -> int:
    return sum(durations)


def cumulative_ends(durations: Sequence[int]) -> list[int]:
    return list(accumulate(durations))


def current_activity_index(durations: Sequence[int], elapsed_seconds: int) -> int:
    """Index of the first activity whose end strictly exceeds ``elapsed_seconds``.

    Falls back to the last index once every activity is consumed, and to 0
    for an empty sequence.
    """
    for index, end in enumerate(cumulative_ends(durations)):
        if end > elapsed_seconds:
            return index
    return max(0, len(durations) - 1)


def remaining_in_current(durations: Sequence[int], elapsed_seconds: int) -> int:
    if not durations:
        return 0
    index = current_activity_index(durations, elapsed_seconds)
    end = cumulative_ends(durations)[index]
    return max(0, end - elapsed_seconds)


def progress_fraction(durations: Sequence[int], elapsed_seconds: int) -> float:
    total = total_seconds(durations)
    if total <= 0:
        return 0.0
    return elapsed_seconds / total


def progress_percent(fraction: float) -> float:
    """Clamp a progress fraction to a display percentage in ``[0, 100]``."""
    return max(0.0, min(100.0, fraction * 100.0))


def is_complete(durations: Sequence[int], elapsed_seconds: int) -> bool:
    total = total_seconds(durations)
    return total > 0 and elapsed_seconds >= total


def completed_flags(durations: Sequence[int], elapsed_seconds: int) -> tuple[bool, ...]:
    return tuple(elapsed_seconds >= end for end in cumulative_ends(durations))


def calculate(durations: Sequence[int], elapsed_seconds: int) -> TimelineView:
    return TimelineView(
        total_seconds=total_seconds(durations),
        elapsed_seconds=elapsed_seconds,
        current_index=current_activity_index(durations, elapsed_seconds),
        remaining_seconds=remaining_in_current(durations, elapsed_seconds),
        progress=progress_fraction(durations, elapsed_seconds),
        is_complete=is_complete(durations, elapsed_seconds),
        completed=completed_flags(durations, elapsed_seconds),
    )


def calculate_for(activities: Sequence[Activity], elapsed_seconds: int) -> TimelineView:
    return calculate(
        [activity.planned_duration_seconds for activity in activities],
        elapsed_seconds,
    )
