from __future__ import annotations
import argparse
import math
import sys
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from uuid import uuid4

from .config import get_settings
from .csv_io import generate_payroll_csv, generate_timesheet_csv, write_export
from .exceptions import NotFoundError, TimecardError
from .logging import bind_command, configure_logging
from .models import LeaveType, Role, RulesConfig, User
from .pto import approve_leave, deny_leave, request_leave
from .rules import NUMERIC_FIELDS, merge_rules, parse_override
from .storage import DataStore
from .summaries import day_breakdown, summarize_day, summarize_pay_week, summarize_week, week_breakdown
from .time_tracking import check_in, check_out, sessions_for_user, to_ymd
from .views import format_dashboard, format_timecard, format_whos_in


def store_from_args(args: argparse.Namespace) -> DataStore:
    data_dir = Path(args.data_dir) if args.data_dir else get_settings().data_dir
    return DataStore(data_dir)


def parse_date(value: str | None) -> date:
    return date.fromisoformat(value) if value else date.today()


def parse_timestamp(value: str | None) -> datetime:
    return datetime.fromisoformat(value) if value else datetime.now()


def require_user(store: DataStore, user_id: str) -> User:
    try:
        return store.users[user_id]
    except KeyError:
        raise NotFoundError(f"Unknown user {user_id}") from None


def resolve_rules(store: DataStore, user_id: str | None) -> RulesConfig:
    if not user_id:
        return store.rules
    user = store.users.get(user_id)
    return merge_rules(store.rules, user.terms if user else None)


def cmd_add_user(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    user = User(
        id=args.id or str(uuid4()),
        name=args.name,
        role=Role(args.role),
        emp_no=args.emp_no,
        username=args.username,
        manager=args.manager,
        code=args.code,
        department=args.department,
    )
    store.add_user(user)
    store.save_users()
    print(f"Added user {user.id} ({user.name})")


def cmd_list_users(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    for user in store.list_users():
        terms = "custom terms" if user.terms else "company terms"
        print(f"{user.id} {user.name} role: {user.role.value} dept: {user.department or '-'} {terms}")


def cmd_check_in(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    session = check_in(store, args.user, parse_timestamp(args.at))
    print(f"Checked in {session.user_id} at {session.check_in.isoformat()}")


def cmd_check_out(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    session = check_out(store, parse_timestamp(args.at))
    print(f"Checked out {session.user_id} at {session.check_out.isoformat()}")


def cmd_status(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    print(format_whos_in(store.list_users(), store.active_session))


def cmd_today(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    require_user(store, args.user)
    day = to_ymd(parse_date(args.date))
    sessions = sessions_for_user(store.sessions, args.user)
    rules = resolve_rules(store, args.user)
    summary = summarize_day(day, sessions, rules)
    breakdown = day_breakdown(day, sessions, rules)
    print(
        f"{summary.date} total={summary.total_hours:.2f} reg={breakdown.reg:.2f} ot1={breakdown.ot1:.2f} "
        f"ot2={breakdown.ot2:.2f} hol={breakdown.hol:.2f} holiday={'yes' if summary.is_holiday else 'no'} "
        f"early={'yes' if summary.is_early_checkout else 'no'}"
    )


def cmd_week(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    if args.user:
        require_user(store, args.user)
    summary = summarize_week(sessions_for_user(store.sessions, args.user), resolve_rules(store, args.user), parse_date(args.anchor))
    print(f"Week of {summary.week_start}: {summary.total_hours:.2f}h, overtime {summary.overtime_hours:.2f}h")


def cmd_pay(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    require_user(store, args.user)
    anchor = parse_date(args.anchor)
    sessions = sessions_for_user(store.sessions, args.user)
    rules = resolve_rules(store, args.user)
    print(
        format_dashboard(
            summarize_day(to_ymd(anchor), sessions, rules),
            summarize_week(sessions, rules, anchor),
            summarize_pay_week(sessions, rules, anchor),
        )
    )


def cmd_timecard(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    user = require_user(store, args.user)
    leave = [r for r in store.leave_requests.values() if r.employee_id == user.id]
    rows = week_breakdown(
        parse_date(args.anchor),
        sessions_for_user(store.sessions, user.id),
        resolve_rules(store, user.id),
        leave,
    )
    print(format_timecard(rows, user))


def cmd_set_rule(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    if args.field not in NUMERIC_FIELDS:
        raise ValueError(f"Unknown rule field {args.field}")
    if not math.isfinite(args.value):
        raise ValueError(f"Rule {args.field} must be a finite number")
    store.rules = replace(store.rules, **{args.field: args.value})
    store.save_rules()
    print(f"Set {args.field} = {args.value}")


def cmd_add_holiday(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    day = parse_date(args.date).isoformat()
    store.rules = replace(store.rules, holidays=sorted(set(store.rules.holidays) | {day}))
    store.save_rules()
    print(f"Added holiday {day}")


def cmd_remove_holiday(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    day = parse_date(args.date).isoformat()
    store.rules = replace(store.rules, holidays=[d for d in store.rules.holidays if d != day])
    store.save_rules()
    print(f"Removed holiday {day}")


def cmd_set_override(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    user = require_user(store, args.user)
    entries = {}
    for item in args.values:
        name, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected field=value, got {item}")
        entries[name.strip()] = value
    user.terms = parse_override(entries)
    store.save_users()
    fields = ", ".join(sorted(user.terms.defined_fields())) if user.terms else "none"
    print(f"Overrides for {user.id}: {fields}")


def cmd_clear_override(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    user = require_user(store, args.user)
    user.terms = None
    store.save_users()
    print(f"Cleared overrides for {user.id}")


def cmd_request_leave(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    request = request_leave(
        store,
        args.user,
        LeaveType(args.type),
        parse_date(args.start),
        parse_date(args.end),
        args.hours,
        args.note,
    )
    print(f"Requested {request.leave_type.value} leave {request.id} for {request.hours} hours")


def cmd_approve_leave(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    request = approve_leave(store, args.id)
    print(f"Approved leave {request.id}")


def cmd_deny_leave(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    request = deny_leave(store, args.id)
    print(f"Denied leave {request.id}")


def cmd_list_leave(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    requests = sorted(store.leave_requests.values(), key=lambda r: r.start_date)
    for request in requests:
        if args.user and request.employee_id != args.user:
            continue
        print(
            f"{request.id} {request.employee_id} {request.leave_type.value} {request.start_date} - {request.end_date} "
            f"{request.hours}h status={request.status.value}"
        )


def _emit(content: str, path: str | None, label: str) -> None:
    if path:
        write_export(Path(path), content)
        print(f"Exported {label} to {path}")
    else:
        print(content)


def cmd_export_timesheet(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    sessions = sessions_for_user(store.sessions, args.user)
    _emit(generate_timesheet_csv(sessions, store.users.values(), store.rules), args.path, "timesheet")


def cmd_export_payroll(args: argparse.Namespace) -> None:
    store = store_from_args(args)
    users = [u for u in store.list_users() if u.role is Role.USER]
    _emit(generate_payroll_csv(users, store.sessions, store.rules, parse_date(args.anchor)), args.path, "payroll")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Timecard and payroll hours CLI")
    parser.add_argument("--data-dir", help="Directory holding the timecard state (defaults to TIMECARD_DATA_DIR)")
    sub = parser.add_subparsers(dest="command", required=True)

    add_user = sub.add_parser("add-user", help="Add an employee or admin")
    add_user.add_argument("name")
    add_user.add_argument("--id")
    add_user.add_argument("--role", choices=[r.value for r in Role], default=Role.USER.value)
    add_user.add_argument("--emp-no")
    add_user.add_argument("--username")
    add_user.add_argument("--manager")
    add_user.add_argument("--code")
    add_user.add_argument("--department")
    add_user.set_defaults(func=cmd_add_user)

    list_users = sub.add_parser("list-users", help="List users by name")
    list_users.set_defaults(func=cmd_list_users)

    clock_in = sub.add_parser("check-in", help="Open a work session")
    clock_in.add_argument("user")
    clock_in.add_argument("--at", help="ISO timestamp (defaults to now)")
    clock_in.set_defaults(func=cmd_check_in)

    clock_out = sub.add_parser("check-out", help="Close the open work session")
    clock_out.add_argument("--at", help="ISO timestamp (defaults to now)")
    clock_out.set_defaults(func=cmd_check_out)

    status = sub.add_parser("status", help="Show who is checked in")
    status.set_defaults(func=cmd_status)

    today = sub.add_parser("today", help="Daily summary and tier breakdown")
    today.add_argument("user")
    today.add_argument("--date", help="Day to summarize (defaults to today)")
    today.set_defaults(func=cmd_today)

    week = sub.add_parser("week", help="Weekly hours and overtime estimate")
    week.add_argument("--user", help="Limit to one user (defaults to everyone)")
    week.add_argument("--anchor", help="Any date in the week (defaults to today)")
    week.set_defaults(func=cmd_week)

    pay = sub.add_parser("pay", help="Weekly pay dashboard for a user")
    pay.add_argument("user")
    pay.add_argument("--anchor", help="Any date in the week (defaults to today)")
    pay.set_defaults(func=cmd_pay)

    timecard = sub.add_parser("timecard", help="Render the weekly time card")
    timecard.add_argument("user")
    timecard.add_argument("--anchor", help="Any date in the week (defaults to today)")
    timecard.set_defaults(func=cmd_timecard)

    set_rule = sub.add_parser("set-rule", help="Change a company pay rule")
    set_rule.add_argument("field", choices=NUMERIC_FIELDS)
    set_rule.add_argument("value", type=float)
    set_rule.set_defaults(func=cmd_set_rule)

    add_holiday = sub.add_parser("add-holiday", help="Add a company holiday")
    add_holiday.add_argument("date")
    add_holiday.set_defaults(func=cmd_add_holiday)

    remove_holiday = sub.add_parser("remove-holiday", help="Remove a company holiday")
    remove_holiday.add_argument("date")
    remove_holiday.set_defaults(func=cmd_remove_holiday)

    set_override = sub.add_parser("set-override", help="Replace a user's rule overrides")
    set_override.add_argument("user")
    set_override.add_argument("values", nargs="*", help="field=value pairs, e.g. hourly_rate=25")
    set_override.set_defaults(func=cmd_set_override)

    clear_override = sub.add_parser("clear-override", help="Drop a user's rule overrides")
    clear_override.add_argument("user")
    clear_override.set_defaults(func=cmd_clear_override)

    leave = sub.add_parser("request-leave", help="Submit a leave request")
    leave.add_argument("user")
    leave.add_argument("type", choices=[t.value for t in LeaveType])
    leave.add_argument("start")
    leave.add_argument("end")
    leave.add_argument("hours", type=float)
    leave.add_argument("--note")
    leave.set_defaults(func=cmd_request_leave)

    approve = sub.add_parser("approve-leave", help="Approve a leave request")
    approve.add_argument("id")
    approve.set_defaults(func=cmd_approve_leave)

    deny = sub.add_parser("deny-leave", help="Deny a leave request")
    deny.add_argument("id")
    deny.set_defaults(func=cmd_deny_leave)

    list_leave = sub.add_parser("list-leave", help="List leave requests")
    list_leave.add_argument("--user")
    list_leave.set_defaults(func=cmd_list_leave)

    export_timesheet = sub.add_parser("export-timesheet", help="Export sessions as timesheet CSV")
    export_timesheet.add_argument("path", nargs="?", help="Output file (defaults to stdout)")
    export_timesheet.add_argument("--user")
    export_timesheet.set_defaults(func=cmd_export_timesheet)

    export_payroll = sub.add_parser("export-payroll", help="Export weekly payroll CSV for every employee")
    export_payroll.add_argument("path", nargs="?", help="Output file (defaults to stdout)")
    export_payroll.add_argument("--anchor", help="Any date in the week (defaults to today)")
    export_payroll.set_defaults(func=cmd_export_payroll)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings(), Path(args.data_dir) if args.data_dir else None)
    bind_command(args.command)
    try:
        args.func(args)
    except (TimecardError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
