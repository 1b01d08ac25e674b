from __future__ import annotations
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from .models import DayBreakdown, DaySummary, PaySummary, User, WeekSummary, WorkSession

HOUR_COLUMNS = ["total", "reg", "ot1", "ot2", "vac", "hol", "sic", "per", "pbr", "ubr"]


def _clock(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M") if value else "-"


def _day_label(iso: str) -> str:
    return date.fromisoformat(iso).strftime("%a %Y-%m-%d")


def format_timecard(rows: Sequence[DayBreakdown], user: Optional[User] = None) -> str:
    """Weekly time card: one line per day with a totals footer."""

    title = f"Time card: {user.name} ({user.code or user.emp_no or user.id})" if user else "Time card"
    header = f"{'Date':<15}" + "".join(f"{col.upper():>7}" for col in HOUR_COLUMNS) + f"  {'IN':<6} {'OUT':<6}"
    lines = [title, header]
    totals = {col: 0.0 for col in HOUR_COLUMNS}
    for row in rows:
        cells = ""
        for col in HOUR_COLUMNS:
            value = getattr(row, col)
            totals[col] += value
            cells += f"{value:>7.2f}"
        lines.append(f"{_day_label(row.date):<15}{cells}  {_clock(row.first_in):<6} {_clock(row.last_out):<6}")
    lines.append(f"{'Totals':<15}" + "".join(f"{totals[col]:>7.2f}" for col in HOUR_COLUMNS))
    return "\n".join(lines)


def format_dashboard(today: DaySummary, week: WeekSummary, pay: PaySummary) -> str:
    flags = []
    if today.is_holiday:
        flags.append("holiday")
    if today.is_early_checkout:
        flags.append("early checkout")
    rows = [
        f"Today {today.date}: {today.total_hours:.2f}h" + (f" ({', '.join(flags)})" if flags else ""),
        f"Week of {week.week_start}: {week.total_hours:.2f}h, overtime {week.overtime_hours:.2f}h",
        "Pay",
        f"  Regular      {pay.regular_hours:>7.2f}h  {pay.regular_pay:>10.2f}",
        f"  Overtime     {pay.overtime_hours:>7.2f}h  {pay.overtime_pay:>10.2f}",
        f"  Double time  {pay.double_time_hours:>7.2f}h  {pay.double_time_pay:>10.2f}",
        f"  Holiday      {pay.holiday_hours:>7.2f}h  {pay.holiday_extra_pay:>10.2f}",
    ]
    if pay.holiday_credit_hours:
        rows.append(f"  Holiday credit {pay.holiday_credit_hours:.2f}h (paid at regular rate)")
    rows.append(f"  Total pay {pay.total_pay:.2f}")
    return "\n".join(rows)


def format_whos_in(users: Iterable[User], active: Optional[WorkSession]) -> str:
    rows: List[str] = ["Who's in"]
    for user in users:
        if active is not None and active.user_id == user.id:
            rows.append(f"{user.name:<24} in since {active.check_in.strftime('%Y-%m-%d %H:%M')}")
        else:
            rows.append(f"{user.name:<24} out")
    return "\n".join(rows)
