"""Display-status and add-eligibility rules layered over persisted sessions."""

from __future__ import annotations

from dataclasses import replace

from .constants import DISPLAY_STATUS_INCOMPLETE, STATUS_COMPLETED
from .models import DisplayStatus, Session
from .timeline import completed_flags


def all_activities_completed(session: Session) -> bool:
    return all(activity.completed for activity in session.activities)


def can_add_activities(session: Session) -> bool:
    """False only for a session that is completed with every activity done."""
    return session.status != STATUS_COMPLETED or not all_activities_completed(session)


def display_status(session: Session) -> DisplayStatus:
    if session.status == STATUS_COMPLETED and not all_activities_completed(session):
        return DISPLAY_STATUS_INCOMPLETE
    return session.status


def with_derived_completion(session: Session, elapsed_seconds: int) -> Session:
    """Refresh cached ``completed`` flags from the timeline at ``elapsed_seconds``."""
    flags = completed_flags(session.planned_durations, elapsed_seconds)
    activities = tuple(
        activity if activity.completed == flag else replace(activity, completed=flag)
        for activity, flag in zip(session.activities, flags)
    )
    return replace(session, activities=activities)
