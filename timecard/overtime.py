from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Tuple

from .models import RulesConfig


@dataclass
class OvertimeBucket:
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    doubletime_hours: float = 0.0


@dataclass
class DailyTierRule:
    daily_threshold: float = 8.0
    double_time_threshold: float = 12.0

    @classmethod
    def from_rules(cls, rules: RulesConfig) -> "DailyTierRule":
        return cls(
            daily_threshold=rules.daily_overtime_threshold_hours,
            double_time_threshold=rules.double_time_daily_threshold_hours,
        )

    def classify(self, daily_hours: float) -> OvertimeBucket:
        # Tiers are [0, ot), [ot, dt), [dt, inf); an inverted dt collapses OT1 to zero width.
        regular = min(daily_hours, self.daily_threshold)
        overtime = min(
            max(daily_hours - self.daily_threshold, 0.0),
            max(self.double_time_threshold - self.daily_threshold, 0.0),
        )
        double_time = max(daily_hours - self.double_time_threshold, 0.0)
        return OvertimeBucket(regular_hours=regular, overtime_hours=overtime, doubletime_hours=double_time)


@dataclass
class WeeklyThresholdRule:
    threshold: float = 40.0

    @classmethod
    def from_rules(cls, rules: RulesConfig) -> "WeeklyThresholdRule":
        return cls(threshold=rules.overtime_weekly_threshold_hours)

    def excess(self, total_hours: float) -> float:
        return max(0.0, total_hours - self.threshold)

    def reconcile(self, total_hours: float, daily_regular_hours: float) -> Tuple[float, float]:
        """Carve weekly overtime out of daily-regular hours.

        Returns ``(regular_hours, weekly_overtime_hours)``. Hours already in the
        daily overtime or double-time tiers are never reclassified.
        """

        weekly_overtime = min(self.excess(total_hours), daily_regular_hours)
        regular = max(0.0, daily_regular_hours - weekly_overtime)
        return regular, weekly_overtime


def week_bounds(anchor: date) -> Tuple[date, date]:
    start = anchor - timedelta(days=anchor.weekday())
    end = start + timedelta(days=6)
    return start, end
