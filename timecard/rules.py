from __future__ import annotations
import math
from dataclasses import fields, replace
from typing import Any, Dict, List, Mapping, Optional

from .models import RulesConfig, RulesOverride


DEFAULT_RULES = RulesConfig(
    hourly_rate=20,
    expected_daily_hours=8,
    overtime_weekly_threshold_hours=40,
    daily_overtime_threshold_hours=8,
    double_time_daily_threshold_hours=12,
    overtime_multiplier=1.5,
    double_time_multiplier=2,
    holiday_multiplier=2,
    holiday_paid_hours_credit=8,
    holidays=["2025-01-01", "2025-07-04", "2025-09-01", "2025-11-27", "2025-12-25"],
)

NUMERIC_FIELDS: List[str] = [f.name for f in fields(RulesConfig) if f.name != "holidays"]


def merge_rules(base: RulesConfig, override: Optional[RulesOverride]) -> RulesConfig:
    """Apply a user's sparse override on top of the company rules.

    A missing override returns ``base`` itself. An override holiday list
    replaces the company list rather than extending it.
    """

    if override is None:
        return base
    changes = override.defined_fields()
    if "holidays" in changes:
        changes["holidays"] = list(changes["holidays"])
    return replace(base, **changes)


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def normalize_rules(raw: Any, defaults: RulesConfig = DEFAULT_RULES) -> RulesConfig:
    """Coerce persisted rules into a usable config, falling back field by field."""

    data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    values: Dict[str, Any] = {}
    for name in NUMERIC_FIELDS:
        number = _finite(data.get(name))
        values[name] = number if number is not None else getattr(defaults, name)
    holidays = data.get("holidays")
    values["holidays"] = [str(day) for day in holidays] if isinstance(holidays, list) else list(defaults.holidays)
    return RulesConfig(**values)


def normalize_override(raw: Any) -> Optional[RulesOverride]:
    """Keep only the usable fields of a persisted override; invalid ones fall back at merge time."""

    if not isinstance(raw, Mapping):
        return None
    values: Dict[str, Any] = {}
    for name in NUMERIC_FIELDS:
        number = _finite(raw.get(name))
        if number is not None:
            values[name] = number
    if isinstance(raw.get("holidays"), list):
        values["holidays"] = [str(day) for day in raw["holidays"]]
    return RulesOverride(**values) if values else None


def parse_override(entries: Mapping[str, str]) -> Optional[RulesOverride]:
    """Build an override from form-style text values, skipping blanks and non-numbers."""

    values: Dict[str, float] = {}
    for name, text in entries.items():
        if name not in NUMERIC_FIELDS:
            raise ValueError(f"Unknown rule field {name}")
        if text is None or not str(text).strip():
            continue
        number = _finite(str(text).strip())
        if number is not None:
            values[name] = number
    return RulesOverride(**values) if values else None


def rules_to_dict(rules: RulesConfig) -> Dict[str, Any]:
    payload = {name: getattr(rules, name) for name in NUMERIC_FIELDS}
    payload["holidays"] = list(rules.holidays)
    return payload


def override_to_dict(override: Optional[RulesOverride]) -> Optional[Dict[str, Any]]:
    if override is None:
        return None
    return override.defined_fields()
