"""AnalyticsService - loads habits and logs and builds the analytics report"""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from betterme.config import ANALYTICS_WINDOW_DAYS, TOP_HABITS_LIMIT
from betterme.db.store import Storage
from betterme.progression.analytics import AnalyticsReport, build_report

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Read-only; storage failures propagate to the caller"""

    def __init__(
        self,
        store: Storage,
        window_days: int = ANALYTICS_WINDOW_DAYS,
        top_limit: int = TOP_HABITS_LIMIT
    ):
        self.store = store
        self.window_days = window_days
        self.top_limit = top_limit

    async def get_report(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        tz: tzinfo = timezone.utc
    ) -> AnalyticsReport:
        if now is None:
            now = datetime.now(timezone.utc)

        habits = await self.store.list_habits(user_id, active_only=True)
        logs = await self.store.list_habit_logs(
            user_id,
            since=now - timedelta(days=self.window_days),
            descending=True,
        )
        logger.debug(f"Analytics for {user_id}: {len(habits)} habits, {len(logs)} logs")

        return build_report(
            habits,
            logs,
            now=now,
            tz=tz,
            window_days=self.window_days,
            top_limit=self.top_limit,
        )
