"""Day and week aggregation over work sessions.

Every function here is a pure computation: sessions and rules in, new summary
records out. Sessions are expected to be scoped to one user by the caller
(or deliberately left unscoped for company-wide totals), and the week
functions take the reference date explicitly so historical weeks can be
summarized the same way as the current one.
"""

from __future__ import annotations
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Sequence

from .models import DayBreakdown, DaySummary, LeaveRequest, LeaveType, PaySummary, RulesConfig, WeekSummary, WorkSession
from .overtime import DailyTierRule, OvertimeBucket, WeeklyThresholdRule, week_bounds
from .pto import leave_hours_on
from .time_tracking import as_date, get_week_days, hours_between, is_holiday, local_datetime, sessions_on


def _worked_hours(sessions: Iterable[WorkSession]) -> float:
    return sum(hours_between(s.check_in, s.check_out) for s in sessions)


def summarize_day(day: str, sessions: Iterable[WorkSession], rules: RulesConfig) -> DaySummary:
    total_hours = _worked_hours(sessions_on(day, sessions))
    holiday = is_holiday(day, rules.holidays)
    early = not holiday and 0 < total_hours < rules.expected_daily_hours
    return DaySummary(date=day, total_hours=total_hours, is_holiday=holiday, is_early_checkout=early)


def day_breakdown(
    day: str,
    sessions: Iterable[WorkSession],
    rules: RulesConfig,
    leave: Iterable[LeaveRequest] = (),
) -> DayBreakdown:
    worked = sessions_on(day, sessions)
    total = _worked_hours(worked)
    breakdown = DayBreakdown(date=day, total=total)

    if is_holiday(day, rules.holidays):
        breakdown.hol = total
    else:
        bucket = DailyTierRule.from_rules(rules).classify(total)
        breakdown.reg = bucket.regular_hours
        breakdown.ot1 = bucket.overtime_hours
        breakdown.ot2 = bucket.doubletime_hours

    leave_hours = leave_hours_on(date.fromisoformat(day), leave)
    breakdown.vac = leave_hours[LeaveType.VACATION]
    breakdown.sic = leave_hours[LeaveType.SICK]
    breakdown.per = leave_hours[LeaveType.PERSONAL]

    if worked:
        breakdown.first_in = min((s.check_in for s in worked), key=local_datetime)
        completed = [s.check_out for s in worked if s.check_out is not None]
        if completed:
            breakdown.last_out = max(completed, key=local_datetime)
    return breakdown


def week_breakdown(
    reference: date | datetime,
    sessions: Sequence[WorkSession],
    rules: RulesConfig,
    leave: Iterable[LeaveRequest] = (),
) -> List[DayBreakdown]:
    leave = list(leave)
    return [day_breakdown(day, sessions, rules, leave) for day in get_week_days(reference)]


def _hours_by_day(sessions: Iterable[WorkSession], monday: date, sunday: date) -> Dict[date, float]:
    per_day: Dict[date, float] = defaultdict(float)
    for session in sessions:
        day = as_date(session.check_in)
        if monday <= day <= sunday:
            per_day[day] += hours_between(session.check_in, session.check_out)
    return per_day


def summarize_week(sessions: Iterable[WorkSession], rules: RulesConfig, reference: date | datetime) -> WeekSummary:
    """Coarse weekly view: total hours and anything past the weekly threshold."""

    monday, sunday = week_bounds(as_date(reference))
    total_hours = sum(_hours_by_day(sessions, monday, sunday).values())
    overtime_hours = WeeklyThresholdRule.from_rules(rules).excess(total_hours)
    return WeekSummary(week_start=monday.isoformat(), total_hours=total_hours, overtime_hours=overtime_hours)


def summarize_pay_week(sessions: Iterable[WorkSession], rules: RulesConfig, reference: date | datetime) -> PaySummary:
    """Tiered hours and pay for the Monday-start week containing ``reference``.

    Daily tiers are applied first. Weekly overtime is then carved only out of
    hours that stayed regular at the daily level. Worked holiday hours earn the
    holiday premium on top; an unworked holiday earns the configured credit at
    straight time.
    """

    monday, sunday = week_bounds(as_date(reference))
    per_day = _hours_by_day(sessions, monday, sunday)
    tier_rule = DailyTierRule.from_rules(rules)

    holiday_hours = 0.0
    holiday_credit_hours = 0.0
    daily = OvertimeBucket()

    for offset in range(7):
        day = monday + timedelta(days=offset)
        worked = per_day.get(day, 0.0)
        if is_holiday(day.isoformat(), rules.holidays):
            holiday_hours += worked
            if worked == 0 and rules.holiday_paid_hours_credit > 0:
                holiday_credit_hours += rules.holiday_paid_hours_credit
            continue
        bucket = tier_rule.classify(worked)
        daily.regular_hours += bucket.regular_hours
        daily.overtime_hours += bucket.overtime_hours
        daily.doubletime_hours += bucket.doubletime_hours

    total_hours = holiday_hours + daily.regular_hours + daily.overtime_hours + daily.doubletime_hours
    regular_hours, weekly_overtime_hours = WeeklyThresholdRule.from_rules(rules).reconcile(
        total_hours, daily.regular_hours
    )
    overtime_hours = weekly_overtime_hours + daily.overtime_hours

    rate = rules.hourly_rate
    regular_pay = (regular_hours + holiday_credit_hours) * rate
    overtime_pay = overtime_hours * rate * rules.overtime_multiplier
    double_time_pay = daily.doubletime_hours * rate * rules.double_time_multiplier
    holiday_extra_pay = holiday_hours * rate * max(0.0, rules.holiday_multiplier - 1)

    return PaySummary(
        week_start=monday.isoformat(),
        total_hours=total_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        weekly_overtime_hours=weekly_overtime_hours,
        daily_overtime_hours=daily.overtime_hours,
        double_time_hours=daily.doubletime_hours,
        holiday_hours=holiday_hours,
        holiday_credit_hours=holiday_credit_hours,
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        double_time_pay=double_time_pay,
        holiday_extra_pay=holiday_extra_pay,
        total_pay=regular_pay + overtime_pay + double_time_pay + holiday_extra_pay,
    )
