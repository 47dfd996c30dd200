"""
Analytics Aggregator

Read-only rollups over a profile's habits and completion logs:
- today: completions vs. active habits, experience earned
- last 7 days / last 30 days: completions, experience, daily average
- top habits by completion count
- per-category completions and experience

Experience per log is exp_earned + streak_bonus (the stored snapshot).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence

from betterme.models import Habit, HabitCategory, HabitLog, HABIT_CATEGORIES
from betterme.utils.numbers import round_half_up

WEEK_DAYS = 7
MONTH_DAYS = 30
DEFAULT_TOP_HABITS = 5


@dataclass(frozen=True)
class TodayStats:
    completed: int
    total: int
    exp: int


@dataclass(frozen=True)
class WindowStats:
    days: int
    completed: int
    exp: int
    avg_per_day: int


@dataclass(frozen=True)
class HabitCount:
    habit: Habit
    count: int


@dataclass(frozen=True)
class CategoryStats:
    category: HabitCategory
    count: int
    exp: int


@dataclass(frozen=True)
class AnalyticsReport:
    today: TodayStats
    week: WindowStats
    month: WindowStats
    top_habits: List[HabitCount] = field(default_factory=list)
    categories: List[CategoryStats] = field(default_factory=list)


def sum_exp(logs: Sequence[HabitLog]) -> int:
    return sum(log.total_exp for log in logs)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from storage are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def logs_since(logs: Sequence[HabitLog], since: datetime) -> List[HabitLog]:
    since = _as_utc(since)
    return [log for log in logs if _as_utc(log.completed_at) >= since]


def today_stats(
    habits: Sequence[Habit],
    logs: Sequence[HabitLog],
    now: datetime,
    tz: tzinfo = timezone.utc
) -> TodayStats:
    """Completions whose timestamp falls on `now`'s calendar day in `tz`"""
    today = _as_utc(now).astimezone(tz).date()
    todays = [log for log in logs if _as_utc(log.completed_at).astimezone(tz).date() == today]
    return TodayStats(completed=len(todays), total=len(habits), exp=sum_exp(todays))


def window_stats(logs: Sequence[HabitLog], now: datetime, days: int) -> WindowStats:
    """Completions in the trailing `days` days, average rounded half up"""
    window = logs_since(logs, _as_utc(now) - timedelta(days=days))
    return WindowStats(
        days=days,
        completed=len(window),
        exp=sum_exp(window),
        avg_per_day=round_half_up(len(window) / days),
    )


def top_habits(
    habits: Sequence[Habit],
    logs: Sequence[HabitLog],
    limit: int = DEFAULT_TOP_HABITS
) -> List[HabitCount]:
    """Habits by completion count, descending; ties keep the habit list order"""
    counts: Dict[str, int] = {}
    for log in logs:
        counts[log.habit_id] = counts.get(log.habit_id, 0) + 1

    ranked = [HabitCount(habit=habit, count=counts.get(habit.id, 0)) for habit in habits]
    # sorted() is stable, so equal counts stay in catalog order
    ranked = sorted(ranked, key=lambda hc: hc.count, reverse=True)
    return ranked[:limit]


def category_breakdown(
    habits: Sequence[Habit],
    logs: Sequence[HabitLog]
) -> List[CategoryStats]:
    """Completions and experience for every category, zeros included"""
    category_of = {habit.id: habit.category for habit in habits}
    breakdown = []
    for category in HABIT_CATEGORIES:
        category_logs = [log for log in logs if category_of.get(log.habit_id) == category]
        breakdown.append(CategoryStats(
            category=category,
            count=len(category_logs),
            exp=sum_exp(category_logs),
        ))
    return breakdown


def build_report(
    habits: Sequence[Habit],
    logs: Sequence[HabitLog],
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
    window_days: int = MONTH_DAYS,
    top_limit: int = DEFAULT_TOP_HABITS
) -> AnalyticsReport:
    """
    Build the full analytics report

    Args:
        habits: Active habits, in display order
        logs: Completion logs (anything older than the window is ignored)
        now: Reference time (defaults to now, UTC)
        tz: Timezone that defines "today"
        window_days: Long window length
        top_limit: Number of top habits to return

    Returns:
        AnalyticsReport
    """
    if now is None:
        now = datetime.now(timezone.utc)

    window_logs = logs_since(logs, _as_utc(now) - timedelta(days=window_days))

    return AnalyticsReport(
        today=today_stats(habits, window_logs, now, tz),
        week=window_stats(window_logs, now, WEEK_DAYS),
        month=window_stats(window_logs, now, window_days),
        top_habits=top_habits(habits, window_logs, top_limit),
        categories=category_breakdown(habits, window_logs),
    )
