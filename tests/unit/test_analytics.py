"""Unit tests for the Analytics Aggregator (betterme/progression/analytics.py)"""
import pytest
from datetime import timedelta, timezone

from betterme.models import HabitCategory, HabitLog, HABIT_CATEGORIES
from betterme.progression.analytics import (
    build_report,
    category_breakdown,
    today_stats,
    top_habits,
    window_stats,
)


@pytest.fixture
def make_log(test_user_id):
    counter = {"n": 0}

    def _make(habit_id, completed_at, exp_earned=20, streak_bonus=0):
        counter["n"] += 1
        return HabitLog(
            id=f"log-{counter['n']}",
            user_id=test_user_id,
            habit_id=habit_id,
            completed_at=completed_at,
            exp_earned=exp_earned,
            streak_bonus=streak_bonus,
        )

    return _make


@pytest.fixture
def habits(make_habit):
    return [
        make_habit(id="run", category=HabitCategory.HEALTH),
        make_habit(id="read", category=HabitCategory.LEARNING),
        make_habit(id="call", category=HabitCategory.SOCIAL),
    ]


# ============================================================================
# Today
# ============================================================================

def test_today_stats(habits, make_log, fixed_now):
    """Test today's completions against active habits"""
    logs = [
        make_log("run", fixed_now - timedelta(hours=11), exp_earned=30, streak_bonus=5),
        make_log("read", fixed_now - timedelta(hours=1), exp_earned=20),
        make_log("run", fixed_now - timedelta(days=1)),
    ]

    stats = today_stats(habits, logs, fixed_now)

    assert stats.completed == 2
    assert stats.total == 3
    assert stats.exp == 55


def test_today_stats_uses_timezone(habits, make_log, fixed_now):
    """A log just after UTC midnight belongs to yesterday west of UTC"""
    tz = timezone(timedelta(hours=-5))
    logs = [make_log("run", fixed_now.replace(hour=3))]

    assert today_stats(habits, logs, fixed_now, tz).completed == 0
    assert today_stats(habits, logs, fixed_now).completed == 1


# ============================================================================
# Windows
# ============================================================================

def test_thirty_day_average_rounds_half_up(make_log, fixed_now):
    """15 completions over 30 days average to 1, not 0"""
    logs = [make_log("run", fixed_now - timedelta(days=2 * k, hours=1)) for k in range(15)]

    stats = window_stats(logs, fixed_now, 30)

    assert stats.completed == 15
    assert stats.avg_per_day == 1


def test_thirty_day_average_below_half(make_log, fixed_now):
    """14 completions over 30 days average to 0"""
    logs = [make_log("run", fixed_now - timedelta(days=2 * k, hours=1)) for k in range(14)]

    assert window_stats(logs, fixed_now, 30).avg_per_day == 0


def test_week_window(make_log, fixed_now):
    """Only the trailing 7 days count for the week"""
    logs = [make_log("run", fixed_now - timedelta(days=2 * k, hours=1)) for k in range(15)]

    stats = window_stats(logs, fixed_now, 7)

    assert stats.completed == 4
    assert stats.exp == 80
    assert stats.avg_per_day == 1


def test_window_includes_exact_boundary(make_log, fixed_now):
    """A log exactly 7 days old is inside the week"""
    logs = [make_log("run", fixed_now - timedelta(days=7))]

    assert window_stats(logs, fixed_now, 7).completed == 1


# ============================================================================
# Rankings and categories
# ============================================================================

def test_top_habits_ordering(habits, make_log, fixed_now):
    """Descending by count; ties keep habit list order"""
    logs = [
        make_log("read", fixed_now),
        make_log("read", fixed_now),
        make_log("read", fixed_now),
        make_log("call", fixed_now),
        make_log("run", fixed_now),
    ]

    ranked = top_habits(habits, logs)

    assert [(hc.habit.id, hc.count) for hc in ranked] == [("read", 3), ("run", 1), ("call", 1)]


def test_top_habits_limit(habits, make_log, fixed_now):
    """Test the limit"""
    assert len(top_habits(habits, [], limit=2)) == 2


def test_category_breakdown(habits, make_log, fixed_now):
    """Every category is listed; logs of unknown habits are skipped"""
    logs = [
        make_log("run", fixed_now, exp_earned=30, streak_bonus=5),
        make_log("run", fixed_now, exp_earned=30),
        make_log("read", fixed_now, exp_earned=20),
        make_log("deleted-habit", fixed_now, exp_earned=99),
    ]

    breakdown = category_breakdown(habits, logs)
    by_category = {row.category: row for row in breakdown}

    assert [row.category for row in breakdown] == list(HABIT_CATEGORIES)
    assert by_category[HabitCategory.HEALTH].count == 2
    assert by_category[HabitCategory.HEALTH].exp == 65
    assert by_category[HabitCategory.LEARNING].exp == 20
    assert by_category[HabitCategory.PRODUCTIVITY].count == 0
    assert sum(row.count for row in breakdown) == 3


# ============================================================================
# Full report
# ============================================================================

def test_build_report_ignores_logs_outside_window(habits, make_log, fixed_now):
    """Logs older than the window do not appear anywhere"""
    logs = [
        make_log("run", fixed_now - timedelta(hours=2)),
        make_log("run", fixed_now - timedelta(days=45)),
    ]

    report = build_report(habits, logs, now=fixed_now)

    assert report.today.completed == 1
    assert report.month.completed == 1
    assert report.top_habits[0].count == 1
    assert sum(row.count for row in report.categories) == 1


def test_build_report_empty(habits, fixed_now):
    """No logs at all"""
    report = build_report(habits, [], now=fixed_now)

    assert report.today.completed == 0
    assert report.today.total == 3
    assert report.week.avg_per_day == 0
    assert report.month.exp == 0
