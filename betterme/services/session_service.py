"""
SessionService - Authentication and Profile Session

Wraps the identity provider: creates the level-1 profile on sign-up,
records the daily login streak on sign-in, and exposes the current
session's profile.
"""

import logging
from datetime import datetime
from typing import Optional

from betterme.db.store import Storage
from betterme.exceptions import AuthenticationError
from betterme.identity import AuthSession, IdentityProvider
from betterme.models import Profile
from betterme.progression.levels import exp_band
from betterme.progression.login_streak import update_login_streak

logger = logging.getLogger(__name__)


def new_profile(user_id: str, email: str) -> Profile:
    """A fresh level-1 profile with zero experience"""
    band = exp_band(0)
    return Profile(
        id=user_id,
        email=email,
        character_level=band.level,
        total_exp=0,
        current_exp=band.current_exp,
        exp_to_next=band.exp_to_next,
    )


class SessionService:
    """Holds the single active session of this client"""

    def __init__(self, store: Storage, identity: IdentityProvider):
        self.store = store
        self.identity = identity
        self.session: Optional[AuthSession] = None

    async def sign_up(self, email: str, password: str) -> Profile:
        session = await self.identity.sign_up(email, password)
        profile = await self.store.create_profile(new_profile(session.user_id, session.email or email))
        self.session = session
        logger.info(f"Created profile for new user {session.user_id}")
        return profile

    async def sign_in(self, email: str, password: str, now: Optional[datetime] = None) -> Profile:
        session = await self.identity.sign_in(email, password)
        self.session = session
        return await self.record_login(now)

    async def sign_out(self) -> None:
        if self.session is None:
            return
        try:
            await self.identity.sign_out(self.session)
        finally:
            self.session = None

    async def refresh(self) -> AuthSession:
        self.session = await self.identity.refresh(self._require_session())
        return self.session

    async def current_profile(self) -> Profile:
        """Profile of the signed-in user"""
        return await self.store.get_profile(self._require_session().user_id)

    async def record_login(self, now: Optional[datetime] = None) -> Profile:
        """Advance the daily login streak of the signed-in user"""
        profile = await self.current_profile()
        streak = update_login_streak(profile.login_streak, profile.last_login, now)
        if streak.login_streak != profile.login_streak:
            logger.info(f"Login streak for {profile.id}: {profile.login_streak} -> {streak.login_streak}")
        return await self.store.update_profile(profile.id, {
            "login_streak": streak.login_streak,
            "last_login": streak.last_login,
        })

    def _require_session(self) -> AuthSession:
        if self.session is None:
            raise AuthenticationError(
                message="No active session",
                user_message="Please sign in.",
                operation="current_session",
            )
        return self.session
