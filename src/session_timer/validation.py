"""Input checks for activities before they reach the session store."""

from __future__ import annotations

from typing import Iterable, Sequence

from .constants import MAX_ACTIVITY_NAME_LENGTH
from .errors import ValidationError
from .models import Activity, NewActivity


def normalize_name(name: str) -> str:
    return name.strip().lower()


def validate_new_activities(
    activities: Sequence[NewActivity],
    *,
    existing: Iterable[Activity] = (),
) -> None:
    """Reject empty batches, malformed entries, and case-insensitive duplicates."""
    if not activities:
        raise ValidationError("At least one activity is required")

    seen = {normalize_name(activity.name) for activity in existing}
    for activity in activities:
        name = activity.name.strip()
        if not name:
            raise ValidationError("Activity name is required")
        if len(name) > MAX_ACTIVITY_NAME_LENGTH:
            raise ValidationError(
                f"Activity name must be at most {MAX_ACTIVITY_NAME_LENGTH} characters"
            )
        if isinstance(activity.duration_minutes, bool) or not isinstance(
            activity.duration_minutes, int
        ):
            raise ValidationError(f"Duration for '{name}' must be whole minutes")
        if activity.duration_minutes < 1:
            raise ValidationError(f"Duration for '{name}' must be at least 1 minute")
        if not activity.color_key.strip():
            raise ValidationError(f"Color for '{name}' is required")

        key = normalize_name(name)
        if key in seen:
            raise ValidationError("Activity names must be unique")
        seen.add(key)
