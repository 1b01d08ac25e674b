from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class LeaveType(str, Enum):
    VACATION = "Vacation"
    SICK = "Sick"
    PERSONAL = "Personal"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"


@dataclass
class WorkSession:
    id: str
    user_id: str
    check_in: datetime
    check_out: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.check_out is None


@dataclass(frozen=True)
class RulesConfig:
    hourly_rate: float
    expected_daily_hours: float
    overtime_weekly_threshold_hours: float
    daily_overtime_threshold_hours: float
    double_time_daily_threshold_hours: float
    overtime_multiplier: float
    double_time_multiplier: float
    holiday_multiplier: float
    holiday_paid_hours_credit: float
    holidays: List[str] = field(default_factory=list)


@dataclass
class RulesOverride:
    """Sparse per-employee rules; ``None`` means "use the company value"."""

    hourly_rate: Optional[float] = None
    expected_daily_hours: Optional[float] = None
    overtime_weekly_threshold_hours: Optional[float] = None
    daily_overtime_threshold_hours: Optional[float] = None
    double_time_daily_threshold_hours: Optional[float] = None
    overtime_multiplier: Optional[float] = None
    double_time_multiplier: Optional[float] = None
    holiday_multiplier: Optional[float] = None
    holiday_paid_hours_credit: Optional[float] = None
    holidays: Optional[List[str]] = None

    def defined_fields(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class User:
    id: str
    name: str
    role: Role = Role.USER
    emp_no: Optional[str] = None
    username: Optional[str] = None
    manager: Optional[str] = None
    status: str = "active"
    code: Optional[str] = None
    department: Optional[str] = None
    terms: Optional[RulesOverride] = None


@dataclass
class LeaveRequest:
    id: str
    employee_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    hours: float
    note: Optional[str] = None
    status: LeaveStatus = LeaveStatus.PENDING

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class DaySummary:
    date: str
    total_hours: float
    is_holiday: bool
    is_early_checkout: bool


@dataclass
class DayBreakdown:
    date: str
    total: float = 0.0
    reg: float = 0.0
    ot1: float = 0.0
    ot2: float = 0.0
    hol: float = 0.0
    vac: float = 0.0
    sic: float = 0.0
    per: float = 0.0
    pbr: float = 0.0
    ubr: float = 0.0
    first_in: Optional[datetime] = None
    last_out: Optional[datetime] = None


@dataclass
class WeekSummary:
    week_start: str
    total_hours: float
    overtime_hours: float


@dataclass
class PaySummary:
    week_start: str
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    weekly_overtime_hours: float = 0.0
    daily_overtime_hours: float = 0.0
    double_time_hours: float = 0.0
    holiday_hours: float = 0.0
    holiday_credit_hours: float = 0.0
    regular_pay: float = 0.0
    overtime_pay: float = 0.0
    double_time_pay: float = 0.0
    holiday_extra_pay: float = 0.0
    total_pay: float = 0.0
