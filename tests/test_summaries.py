from dataclasses import replace
from datetime import date, datetime

import pytest

from timecard.models import LeaveRequest, LeaveStatus, LeaveType, WorkSession
from timecard.rules import DEFAULT_RULES
from timecard.summaries import day_breakdown, summarize_day, summarize_pay_week, summarize_week, week_breakdown

RULES = replace(
    DEFAULT_RULES,
    daily_overtime_threshold_hours=8,
    double_time_daily_threshold_hours=12,
    overtime_multiplier=1.5,
    double_time_multiplier=2,
    hourly_rate=20,
    overtime_weekly_threshold_hours=40,
    holiday_multiplier=2,
    holiday_paid_hours_credit=8,
    expected_daily_hours=8,
    holidays=["2025-07-04"],
)


def session(day: str, start: int, end: int | None, user_id: str = "u1", sid: str | None = None) -> WorkSession:
    d = date.fromisoformat(day)
    check_out = datetime(d.year, d.month, d.day, end) if end is not None else None
    return WorkSession(sid or f"{day}-{start}", user_id, datetime(d.year, d.month, d.day, start), check_out)


def test_long_monday_splits_into_regular_and_overtime():
    breakdown = day_breakdown("2025-06-30", [session("2025-06-30", 8, 19)], RULES)

    assert breakdown.total == pytest.approx(11)
    assert breakdown.reg == pytest.approx(8)
    assert breakdown.ot1 == pytest.approx(3)
    assert breakdown.ot2 == 0
    assert breakdown.hol == 0


def test_fourteen_hour_day_reaches_double_time():
    breakdown = day_breakdown("2025-07-01", [session("2025-07-01", 6, 20)], RULES)

    assert breakdown.total == pytest.approx(14)
    assert breakdown.reg == pytest.approx(8)
    assert breakdown.ot1 == pytest.approx(4)
    assert breakdown.ot2 == pytest.approx(2)
    assert breakdown.reg + breakdown.ot1 + breakdown.ot2 == pytest.approx(breakdown.total)


def test_worked_holiday_goes_to_holiday_bucket_and_is_never_early():
    sessions = [session("2025-07-04", 9, 14)]

    breakdown = day_breakdown("2025-07-04", sessions, RULES)
    summary = summarize_day("2025-07-04", sessions, RULES)

    assert breakdown.hol == pytest.approx(5)
    assert (breakdown.reg, breakdown.ot1, breakdown.ot2) == (0, 0, 0)
    assert summary.is_holiday is True
    assert summary.is_early_checkout is False


def test_short_regular_day_is_early_checkout():
    summary = summarize_day("2025-07-01", [session("2025-07-01", 9, 14)], RULES)

    assert summary.total_hours == pytest.approx(5)
    assert summary.is_early_checkout is True


def test_day_without_hours_is_not_early_checkout():
    summary = summarize_day("2025-07-01", [session("2025-07-01", 9, None)], RULES)

    assert summary.total_hours == 0
    assert summary.is_early_checkout is False


def test_first_in_and_last_out_ignore_open_sessions():
    sessions = [
        session("2025-07-01", 13, 17),
        session("2025-07-01", 8, 12),
        session("2025-07-01", 18, None),
    ]

    breakdown = day_breakdown("2025-07-01", sessions, RULES)

    assert breakdown.first_in == datetime(2025, 7, 1, 8)
    assert breakdown.last_out == datetime(2025, 7, 1, 17)
    assert breakdown.total == pytest.approx(8)


def test_last_out_absent_when_nothing_completed():
    breakdown = day_breakdown("2025-07-01", [session("2025-07-01", 8, None)], RULES)

    assert breakdown.first_in == datetime(2025, 7, 1, 8)
    assert breakdown.last_out is None


def test_approved_leave_fills_leave_buckets():
    leave = [
        LeaveRequest("l1", "u1", LeaveType.VACATION, date(2025, 6, 30), date(2025, 7, 1), 16, status=LeaveStatus.APPROVED),
        LeaveRequest("l2", "u1", LeaveType.SICK, date(2025, 6, 30), date(2025, 6, 30), 4, status=LeaveStatus.PENDING),
        LeaveRequest("l3", "u1", LeaveType.PERSONAL, date(2025, 6, 30), date(2025, 6, 30), 2, status=LeaveStatus.APPROVED),
    ]

    breakdown = day_breakdown("2025-06-30", [], RULES, leave)

    assert breakdown.vac == pytest.approx(8)
    assert breakdown.sic == 0
    assert breakdown.per == pytest.approx(2)
    assert breakdown.total == 0
    assert (breakdown.pbr, breakdown.ubr) == (0, 0)


def test_week_breakdown_covers_seven_days():
    rows = week_breakdown(date(2025, 7, 2), [session("2025-06-30", 8, 19)], RULES)

    assert [r.date for r in rows][0] == "2025-06-30"
    assert len(rows) == 7
    assert sum(r.total for r in rows) == pytest.approx(11)


def test_unworked_holiday_earns_credit_at_straight_time():
    pay = summarize_pay_week([], RULES, date(2025, 7, 2))

    assert pay.week_start == "2025-06-30"
    assert pay.holiday_credit_hours == 8
    assert pay.holiday_hours == 0
    assert pay.total_hours == 0
    assert pay.regular_pay == pytest.approx(160)
    assert pay.total_pay == pytest.approx(160)


def test_no_credit_when_credit_is_zero():
    pay = summarize_pay_week([], replace(RULES, holiday_paid_hours_credit=0), date(2025, 7, 2))

    assert pay.holiday_credit_hours == 0
    assert pay.total_pay == 0


def test_weekly_overtime_carved_from_daily_regular():
    sessions = [session(day, 8, 16) for day in ("2025-07-07", "2025-07-08", "2025-07-09", "2025-07-10")]
    sessions.append(session("2025-07-11", 6, 18))

    pay = summarize_pay_week(sessions, RULES, date(2025, 7, 9))

    assert pay.total_hours == pytest.approx(44)
    assert pay.daily_overtime_hours == pytest.approx(4)
    assert pay.weekly_overtime_hours == pytest.approx(4)
    assert pay.regular_hours == pytest.approx(36)
    assert pay.overtime_hours == pytest.approx(8)
    assert pay.double_time_hours == 0
    assert pay.regular_pay == pytest.approx(720)
    assert pay.overtime_pay == pytest.approx(240)
    assert pay.total_pay == pytest.approx(960)


def test_mixed_week_hours_reconstruct_total_and_pay():
    sessions = [
        session("2025-06-30", 8, 19),
        session("2025-07-01", 6, 19),
        session("2025-07-04", 9, 14),
        session("2025-07-02", 9, None),
    ]

    pay = summarize_pay_week(sessions, RULES, datetime(2025, 7, 3, 12))

    assert pay.regular_hours + pay.overtime_hours + pay.double_time_hours + pay.holiday_hours == pytest.approx(
        pay.total_hours
    )
    assert pay.total_hours == pytest.approx(29)
    assert pay.regular_hours == pytest.approx(16)
    assert pay.overtime_hours == pytest.approx(7)
    assert pay.double_time_hours == pytest.approx(1)
    assert pay.holiday_hours == pytest.approx(5)
    assert pay.holiday_credit_hours == 0
    assert pay.holiday_extra_pay == pytest.approx(100)
    assert pay.total_pay == pytest.approx(320 + 210 + 40 + 100)


def test_week_window_excludes_neighbouring_weeks():
    sessions = [
        session("2025-06-29", 8, 16, sid="before"),
        session("2025-07-06", 8, 16, sid="sunday"),
        session("2025-07-07", 8, 16, sid="after"),
    ]

    week = summarize_week(sessions, RULES, date(2025, 7, 6))
    pay = summarize_pay_week(sessions, RULES, date(2025, 7, 6))

    assert week.week_start == "2025-06-30"
    assert week.total_hours == pytest.approx(8)
    assert pay.total_hours == pytest.approx(8)


def test_summarize_week_flags_hours_over_threshold():
    sessions = [session(day, 6, 17) for day in ("2025-07-07", "2025-07-08", "2025-07-09", "2025-07-10")]

    week = summarize_week(sessions, RULES, date(2025, 7, 10))

    assert week.total_hours == pytest.approx(44)
    assert week.overtime_hours == pytest.approx(4)
