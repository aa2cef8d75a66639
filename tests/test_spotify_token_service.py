from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.clients.spotify_auth import TokenGrant
from app.clients.token_store import InMemoryTokenStore
from app.core.errors import MissingCredentialError, UpstreamApiError, UpstreamAuthError
from app.services.auth_flow import SpotifyAuthFlow
from app.services.spotify_proxy import SpotifyProxy
from app.services.spotify_tokens import SpotifyTokenService


class DummyOAuthClient:
    def __init__(self, *grants: TokenGrant) -> None:
        self.grants = list(grants) or [TokenGrant(access_token="fresh-access")]
        self.refresh_calls: list[str] = []
        self.codes: list[str] = []

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append(refresh_token)
        if len(self.grants) > 1:
            return self.grants.pop(0)
        return self.grants[0]

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        self.codes.append(code)
        return TokenGrant(access_token="code-access", refresh_token="code-refresh")


class FailingOAuthClient:
    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        raise UpstreamAuthError(path="/api/token", status=400, payload={"error": "invalid_grant"})


class RecordingApiClient:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def request(self, access_token, method, path, *, json=None, params=None):
        self.calls.append((access_token, method, path, json, params))
        return {"ok": True}


@pytest.mark.asyncio
async def test_refresh_uses_stored_token_every_call() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "stored-refresh")
    oauth = DummyOAuthClient()
    service = SpotifyTokenService(store=store, oauth_client=oauth)

    assert await service.get_access_token("user-1") == "fresh-access"
    assert await service.get_access_token("user-1") == "fresh-access"

    assert oauth.refresh_calls == ["stored-refresh", "stored-refresh"]


@pytest.mark.asyncio
async def test_missing_refresh_token_raises_missing_credential() -> None:
    service = SpotifyTokenService(store=InMemoryTokenStore(), oauth_client=DummyOAuthClient())

    with pytest.raises(MissingCredentialError) as excinfo:
        await service.get_access_token("stranger")

    assert "No refresh token stored" in excinfo.value.message


@pytest.mark.asyncio
async def test_rotated_refresh_token_is_persisted() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "old-refresh")
    oauth = DummyOAuthClient(
        TokenGrant(access_token="a1", refresh_token="new-refresh"),
        TokenGrant(access_token="a2"),
    )
    service = SpotifyTokenService(store=store, oauth_client=oauth)

    await service.get_access_token("user-1")
    assert store.get("user-1") == "new-refresh"

    await service.get_access_token("user-1")
    assert oauth.refresh_calls == ["old-refresh", "new-refresh"]
    assert store.get("user-1") == "new-refresh"


@pytest.mark.asyncio
async def test_omitted_refresh_token_keeps_stored_one() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "kept-refresh")
    service = SpotifyTokenService(store=store, oauth_client=DummyOAuthClient())

    await service.get_access_token("user-1")

    assert store.get("user-1") == "kept-refresh"


@pytest.mark.asyncio
async def test_cache_reuses_access_token_until_forgotten() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "stored-refresh")
    oauth = DummyOAuthClient()
    service = SpotifyTokenService(store=store, oauth_client=oauth, cache_seconds=600)

    await service.get_access_token("user-1")
    await service.get_access_token("user-1")
    assert len(oauth.refresh_calls) == 1

    service.forget("user-1")
    await service.get_access_token("user-1")
    assert len(oauth.refresh_calls) == 2


@pytest.mark.asyncio
async def test_cache_skipped_when_token_lifetime_is_too_short() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "stored-refresh")
    oauth = DummyOAuthClient(TokenGrant(access_token="short", expires_in=30))
    service = SpotifyTokenService(store=store, oauth_client=oauth, cache_seconds=600)

    await service.get_access_token("user-1")
    await service.get_access_token("user-1")

    assert len(oauth.refresh_calls) == 2


@pytest.mark.asyncio
async def test_refresh_failure_propagates() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "revoked")
    service = SpotifyTokenService(store=store, oauth_client=FailingOAuthClient())

    with pytest.raises(UpstreamAuthError):
        await service.get_access_token("user-1")


@pytest.mark.asyncio
async def test_exchange_authorization_code_delegates_to_client() -> None:
    oauth = DummyOAuthClient()
    service = SpotifyTokenService(store=InMemoryTokenStore(), oauth_client=oauth)

    grant = await service.exchange_authorization_code("the-code")

    assert grant.refresh_token == "code-refresh"
    assert oauth.codes == ["the-code"]


@pytest.mark.asyncio
async def test_proxy_mints_token_then_forwards_call() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "stored-refresh")
    api = RecordingApiClient()
    proxy = SpotifyProxy(SpotifyTokenService(store=store, oauth_client=DummyOAuthClient()), api)

    body = await proxy.request(
        "user-1", "PUT", "/me/player/play", {"uris": ["spotify:track:1"]}
    )

    assert body == {"ok": True}
    assert api.calls == [
        ("fresh-access", "PUT", "/me/player/play", {"uris": ["spotify:track:1"]}, None)
    ]


class RejectingApiClient:
    def __init__(self, status: int) -> None:
        self.status = status

    async def request(self, access_token, method, path, *, json=None, params=None):
        raise UpstreamApiError(path=path, status=self.status, payload={"error": "nope"})


@pytest.mark.asyncio
async def test_proxy_drops_cached_token_when_spotify_rejects_it() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "stored-refresh")
    oauth = DummyOAuthClient()
    tokens = SpotifyTokenService(store=store, oauth_client=oauth, cache_seconds=600)
    proxy = SpotifyProxy(tokens, RejectingApiClient(401))

    with pytest.raises(UpstreamApiError):
        await proxy.request("user-1", "GET", "/me/player")
    await tokens.get_access_token("user-1")

    assert len(oauth.refresh_calls) == 2


@pytest.mark.asyncio
async def test_proxy_keeps_cached_token_on_other_failures() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "stored-refresh")
    oauth = DummyOAuthClient()
    tokens = SpotifyTokenService(store=store, oauth_client=oauth, cache_seconds=600)
    proxy = SpotifyProxy(tokens, RejectingApiClient(404))

    with pytest.raises(UpstreamApiError):
        await proxy.request("user-1", "GET", "/me/player")
    await tokens.get_access_token("user-1")

    assert len(oauth.refresh_calls) == 1


class ProfileApiClient:
    async def get_current_user(self, access_token: str) -> dict:
        return {"id": "user-1"}


@pytest.mark.asyncio
async def test_auth_flow_exchanges_code_through_token_service_and_resets_cache() -> None:
    store = InMemoryTokenStore()
    store.save("user-1", "old-refresh")
    oauth = DummyOAuthClient()
    tokens = SpotifyTokenService(store=store, oauth_client=oauth, cache_seconds=600)
    await tokens.get_access_token("user-1")
    flow = SpotifyAuthFlow(
        oauth_client=oauth, token_service=tokens, api_client=ProfileApiClient(), store=store
    )

    result = await flow.complete(code="the-code", state="s", stored_state="s")

    assert oauth.codes == ["the-code"]
    assert result.refresh_token == "code-refresh"
    assert not result.reused_stored_token
    assert store.get("user-1") == "code-refresh"

    await tokens.get_access_token("user-1")
    assert oauth.refresh_calls == ["old-refresh", "code-refresh"]
