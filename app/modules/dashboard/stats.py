"""
Time-range helpers for admin statistics.

Every range is [start, end] inclusive, in UTC. The previous period has the
same length and ends where the current one would start.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Tuple
import math

TIME_RANGES = ("today", "yesterday", "last7Days", "last30Days", "thisMonth", "lastMonth")
DEFAULT_TIME_RANGE = "last7Days"

# Monthly list price per plan, used for the revenue estimate
PLAN_PRICING = {
    "basic": 9.99,
    "pro": 19.99,
    "premium": 29.99,
    "enterprise": 99.99,
}

DateRange = Tuple[datetime, datetime]


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_date_range(time_range: str, now: Optional[datetime] = None) -> DateRange:
    now = now or datetime.now(timezone.utc)
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = now

    if time_range == "today":
        start = today
    elif time_range == "yesterday":
        start = today - timedelta(days=1)
        end = today - timedelta(microseconds=1)
    elif time_range == "last30Days":
        start = now - timedelta(days=30)
    elif time_range == "thisMonth":
        start = today.replace(day=1)
    elif time_range == "lastMonth":
        this_month = today.replace(day=1)
        end = this_month - timedelta(microseconds=1)
        start = end.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    else:
        start = now - timedelta(days=7)
    return start, end


def get_previous_period_range(current: DateRange) -> DateRange:
    start, end = current
    length = end - start
    return start - length, end - length


def calculate_percentage_change(current: float, previous: float) -> int:
    if previous == 0:
        return 100 if current > 0 else 0
    # Half-up rounding
    return int(math.floor((current - previous) / previous * 100 + 0.5))


def in_range(value: Any, date_range: DateRange) -> bool:
    moment = parse_timestamp(value)
    if moment is None:
        return False
    start, end = date_range
    return start <= moment <= end


def count_in_range(rows: Iterable[Dict[str, Any]], field: str, date_range: DateRange) -> int:
    return sum(1 for row in rows if in_range(row.get(field), date_range))


def estimate_revenue(subscriptions: Iterable[Dict[str, Any]]) -> float:
    total = sum(PLAN_PRICING.get((sub.get("plan_type") or "").lower(), 0) for sub in subscriptions)
    return round(total, 2)
