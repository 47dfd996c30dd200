"""Unit tests for the Supabase identity provider"""
import json

import httpx
import pytest

from betterme.exceptions import AuthenticationError, ConnectionError
from betterme.identity import AuthSession, SupabaseIdentityProvider


SESSION_PAYLOAD = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "expires_in": 3600,
    "user": {"id": "user-123", "email": "hero@example.com"},
}


def make_provider(handler) -> SupabaseIdentityProvider:
    return SupabaseIdentityProvider(
        url="https://project.supabase.co/",
        anon_key="anon",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


# ============================================================================
# Successful calls
# ============================================================================

@pytest.mark.asyncio
async def test_sign_in_password_grant():
    """Test sign-in request shape and parsed session"""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SESSION_PAYLOAD)

    session = await make_provider(handler).sign_in("hero@example.com", "secret")

    assert seen["url"].path == "/auth/v1/token"
    assert seen["url"].params["grant_type"] == "password"
    assert seen["apikey"] == "anon"
    assert seen["body"] == {"email": "hero@example.com", "password": "secret"}
    assert session.user_id == "user-123"
    assert session.refresh_token == "refresh-1"
    assert not session.is_expired


@pytest.mark.asyncio
async def test_sign_up_without_confirmation_returns_user():
    """Sign-up may return the bare user object"""
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/signup"
        return httpx.Response(200, json={"id": "user-9", "email": "new@example.com"})

    session = await make_provider(handler).sign_up("new@example.com", "secret")

    assert session.user_id == "user-9"
    assert session.access_token is None
    assert session.expires_at is None


@pytest.mark.asyncio
async def test_sign_out_sends_bearer_token():
    """Test logout uses the access token"""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(204)

    session = AuthSession(user_id="user-123", email="hero@example.com", access_token="access-1")
    await make_provider(handler).sign_out(session)

    assert seen["auth"] == "Bearer access-1"


@pytest.mark.asyncio
async def test_refresh_grant():
    """Test refresh request shape"""
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["grant_type"] == "refresh_token"
        assert json.loads(request.content) == {"refresh_token": "refresh-1"}
        return httpx.Response(200, json={**SESSION_PAYLOAD, "access_token": "access-2"})

    session = AuthSession(user_id="user-123", email="hero@example.com", refresh_token="refresh-1")
    refreshed = await make_provider(handler).refresh(session)

    assert refreshed.access_token == "access-2"


# ============================================================================
# Failures
# ============================================================================

@pytest.mark.asyncio
async def test_rejected_credentials_carry_provider_message():
    """Provider messages are shown to the user"""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

    with pytest.raises(AuthenticationError) as exc_info:
        await make_provider(handler).sign_in("hero@example.com", "wrong")

    assert exc_info.value.user_message == "Invalid login credentials"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_non_json_error_body():
    """Test an error without a JSON body"""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="Service Unavailable")

    with pytest.raises(AuthenticationError) as exc_info:
        await make_provider(handler).sign_up("hero@example.com", "secret")

    assert exc_info.value.user_message == "Service Unavailable"


@pytest.mark.asyncio
async def test_network_failure_wrapped():
    """Transport errors become ConnectionError"""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(ConnectionError):
        await make_provider(handler).sign_in("hero@example.com", "secret")


@pytest.mark.asyncio
async def test_refresh_without_token():
    """Test refresh with no refresh token"""
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(AuthenticationError):
        await make_provider(handler).refresh(AuthSession(user_id="u", email="e"))
