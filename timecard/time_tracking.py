from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional
from uuid import uuid4

from .exceptions import ClockStateError, NotFoundError
from .logging import get_logger
from .models import WorkSession
from .overtime import week_bounds
from .storage import DataStore

logger = get_logger(__name__)


def local_datetime(value: datetime) -> datetime:
    """Return ``value`` as naive local time; aware timestamps are converted first."""

    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return local_datetime(value).date()
    return value


def to_ymd(value: date | datetime) -> str:
    return as_date(value).isoformat()


def hours_between(start: datetime, end: Optional[datetime] = None) -> float:
    if end is None:
        return 0.0
    if start.tzinfo is not None and end.tzinfo is not None:
        elapsed = end - start
    else:
        elapsed = local_datetime(end) - local_datetime(start)
    return max(0.0, elapsed.total_seconds() / 3600)


def is_holiday(day: str, holidays: Iterable[str]) -> bool:
    return day in holidays


def sessions_on(day: str, sessions: Iterable[WorkSession]) -> List[WorkSession]:
    """Sessions attributed to ``day``: those whose check-in falls on it."""

    return [s for s in sessions if to_ymd(s.check_in) == day]


def week_start(reference: date | datetime) -> date:
    start, _ = week_bounds(as_date(reference))
    return start


def get_week_days(base: date | datetime | None = None) -> List[str]:
    monday = week_start(base if base is not None else date.today())
    return [(monday + timedelta(days=offset)).isoformat() for offset in range(7)]


def check_in(store: DataStore, user_id: str, now: datetime) -> WorkSession:
    if store.active_session is not None:
        raise ClockStateError(f"User {store.active_session.user_id} is already checked in")
    if user_id not in store.users:
        raise NotFoundError(f"Unknown user {user_id}")
    session = WorkSession(id=str(uuid4()), user_id=user_id, check_in=now)
    store.active_session = session
    store.save_active_session()
    logger.info("session_checked_in", session_id=session.id, user_id=user_id)
    return session


def check_out(store: DataStore, now: datetime) -> WorkSession:
    active = store.active_session
    if active is None:
        raise ClockStateError("No session is currently open")
    if local_datetime(now) < local_datetime(active.check_in):
        raise ClockStateError("Check-out cannot precede check-in")
    completed = WorkSession(id=active.id, user_id=active.user_id, check_in=active.check_in, check_out=now)
    store.sessions.insert(0, completed)
    store.active_session = None
    store.save_sessions()
    store.save_active_session()
    logger.info(
        "session_checked_out",
        session_id=completed.id,
        user_id=completed.user_id,
        hours=round(hours_between(completed.check_in, completed.check_out), 2),
    )
    return completed


def sessions_for_user(sessions: Iterable[WorkSession], user_id: Optional[str]) -> List[WorkSession]:
    if not user_id:
        return list(sessions)
    return [s for s in sessions if s.user_id == user_id]
