"""
Identity provider collaborator

Sign-up, sign-in, sign-out and session refresh against Supabase Auth
(GoTrue REST API). Every failure raises AuthenticationError carrying the
provider's message for display.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

import httpx

from betterme.config import IDENTITY_TIMEOUT, SUPABASE_ANON_KEY, SUPABASE_URL
from betterme.exceptions import AuthenticationError, wrap_external_exception

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """An authenticated session"""
    user_id: str
    email: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at


class IdentityProvider(Protocol):
    async def sign_up(self, email: str, password: str) -> AuthSession: ...

    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    async def sign_out(self, session: AuthSession) -> None: ...

    async def refresh(self, session: AuthSession) -> AuthSession: ...


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a GoTrue error body"""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _session_from_payload(payload: Dict[str, Any]) -> AuthSession:
    # Sign-up without email confirmation returns the bare user object
    user = payload.get("user") or payload
    expires_at = None
    if payload.get("expires_in"):
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(payload["expires_in"]))
    return AuthSession(
        user_id=user["id"],
        email=user.get("email", ""),
        access_token=payload.get("access_token"),
        refresh_token=payload.get("refresh_token"),
        expires_at=expires_at,
    )


class SupabaseIdentityProvider:
    """IdentityProvider over the Supabase Auth REST endpoints"""

    def __init__(
        self,
        url: str = SUPABASE_URL,
        anon_key: str = SUPABASE_ANON_KEY,
        timeout: float = IDENTITY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _post(
        self,
        operation: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}{path}",
                    json=json,
                    params=params,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation=operation) from e

        if response.is_error:
            message = _error_message(response)
            raise AuthenticationError(
                message=f"{operation} rejected: {message}",
                user_message=message,
                status_code=response.status_code,
                operation=operation,
            )
        return response

    async def sign_up(self, email: str, password: str) -> AuthSession:
        response = await self._post("sign_up", "/signup", json={"email": email, "password": password})
        session = _session_from_payload(response.json())
        logger.info(f"Signed up user {session.user_id}")
        return session

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._post(
            "sign_in",
            "/token",
            json={"email": email, "password": password},
            params={"grant_type": "password"},
        )
        session = _session_from_payload(response.json())
        logger.info(f"Signed in user {session.user_id}")
        return session

    async def sign_out(self, session: AuthSession) -> None:
        await self._post("sign_out", "/logout", access_token=session.access_token)
        logger.info(f"Signed out user {session.user_id}")

    async def refresh(self, session: AuthSession) -> AuthSession:
        if not session.refresh_token:
            raise AuthenticationError(
                message="Session has no refresh token",
                user_message="Your session has expired. Please sign in again.",
                operation="refresh",
            )
        response = await self._post(
            "refresh",
            "/token",
            json={"refresh_token": session.refresh_token},
            params={"grant_type": "refresh_token"},
        )
        return _session_from_payload(response.json())
