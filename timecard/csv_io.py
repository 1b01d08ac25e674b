from __future__ import annotations
import csv
import io
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .exceptions import StorageError
from .logging import get_logger
from .models import RulesConfig, User, WorkSession
from .rules import merge_rules
from .summaries import summarize_day, summarize_pay_week
from .time_tracking import hours_between, to_ymd

logger = get_logger(__name__)


TIMESHEET_HEADERS = ["date", "user", "check_in", "check_out", "hours", "holiday", "early"]

PAYROLL_HEADERS = [
    "user",
    "regular_hours",
    "overtime_hours",
    "double_time_hours",
    "holiday_hours",
    "holiday_credit_hours",
    "regular_pay",
    "overtime_pay",
    "double_time_pay",
    "holiday_extra_pay",
    "total_pay",
]


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def _render(rows: Iterable[Sequence[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def _index_users(users: Iterable[User]) -> Dict[str, User]:
    return {user.id: user for user in users}


def generate_timesheet_csv(sessions: Iterable[WorkSession], users: Iterable[User], base_rules: RulesConfig) -> str:
    """One row per session, flagged with the owner's effective holiday/early rules."""

    by_id = _index_users(users)
    rows: List[List[str]] = [TIMESHEET_HEADERS]
    for session in sessions:
        day = to_ymd(session.check_in)
        user: Optional[User] = by_id.get(session.user_id)
        user_rules = merge_rules(base_rules, user.terms if user else None)
        summary = summarize_day(day, [session], user_rules)
        rows.append(
            [
                day,
                user.name if user else session.user_id,
                session.check_in.isoformat(),
                session.check_out.isoformat() if session.check_out else "",
                f"{hours_between(session.check_in, session.check_out):.2f}",
                _yes_no(summary.is_holiday),
                _yes_no(summary.is_early_checkout),
            ]
        )
    return _render(rows)


def generate_payroll_csv(
    users: Iterable[User],
    sessions: Sequence[WorkSession],
    base_rules: RulesConfig,
    reference: date | datetime,
) -> str:
    """One row per user with the tiered pay for the week containing ``reference``."""

    rows: List[List[str]] = [PAYROLL_HEADERS]
    for user in users:
        user_sessions = [s for s in sessions if s.user_id == user.id]
        pay = summarize_pay_week(user_sessions, merge_rules(base_rules, user.terms), reference)
        rows.append(
            [user.name]
            + [
                f"{value:.2f}"
                for value in (
                    pay.regular_hours,
                    pay.overtime_hours,
                    pay.double_time_hours,
                    pay.holiday_hours,
                    pay.holiday_credit_hours,
                    pay.regular_pay,
                    pay.overtime_pay,
                    pay.double_time_pay,
                    pay.holiday_extra_pay,
                    pay.total_pay,
                )
            ]
        )
    return _render(rows)


def write_export(path: Path, content: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        logger.error("export_failed", path=str(path), error=str(exc))
        raise StorageError(f"Unable to write export to {path}: {exc}") from exc
    logger.info("export_written", path=str(path), bytes=len(content))
    return path
