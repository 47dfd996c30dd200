"""
Daily login streak

Logic:
- First login ever: streak starts at 1
- Another login on the same day: no change
- Login on the day after the last one: streak continues (+1)
- Any larger gap: streak resets to 1
"""

from datetime import date, datetime, timezone
from typing import NamedTuple, Optional
import logging

logger = logging.getLogger(__name__)


class LoginStreak(NamedTuple):
    login_streak: int
    last_login: datetime


def update_login_streak(
    login_streak: int,
    last_login: Optional[datetime],
    now: Optional[datetime] = None
) -> LoginStreak:
    """
    Apply one login to a streak

    Args:
        login_streak: Streak before this login
        last_login: Timestamp of the previous login (None if never)
        now: Login time (defaults to now, UTC)

    Returns:
        LoginStreak(login_streak, last_login)
    """
    if now is None:
        now = datetime.now(timezone.utc)

    today: date = now.date()

    if last_login is None:
        return LoginStreak(1, now)

    last_date = last_login.astimezone(now.tzinfo).date() if now.tzinfo else last_login.date()
    gap_days = (today - last_date).days

    if gap_days <= 0:
        # Same day (or clock skew): keep counting from the existing streak
        return LoginStreak(max(login_streak, 1), now)

    if gap_days == 1:
        return LoginStreak(login_streak + 1, now)

    logger.info(f"Login streak reset after {gap_days} day gap (was {login_streak})")
    return LoginStreak(1, now)
