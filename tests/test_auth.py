"""Auth over the identity REST API."""

import json

import httpx
import pytest

from bearboo.auth import IDENTITY_URL, Auth, LocalIdentity, classify
from bearboo.client import AsyncBearBoo
from bearboo.errors import AuthError, BearBooError
from bearboo.models.session import AUTH_FAILURE_MESSAGES, AuthFailure, AuthUser
from bearboo.transport.http import HttpClient
from bearboo.transport.store import MemoryStore


def error(message: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


class FakeIdentity:
    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        if endpoint in self.responses:
            return self.responses[endpoint]
        body = json.loads(request.content or b"{}")
        if endpoint in ("accounts:signInWithPassword", "accounts:signUp"):
            return httpx.Response(200, json={
                "localId": "u1",
                "email": body.get("email"),
                "displayName": "Alice" if endpoint.endswith("Password") else "",
                "idToken": "id-token",
                "refreshToken": "refresh-token",
            })
        if endpoint == "token":
            return httpx.Response(200, json={"id_token": "new-id", "refresh_token": "new-refresh"})
        return httpx.Response(200, json={})

    def auth(self, store=None) -> Auth:
        http = HttpClient(IDENTITY_URL, params={"key": "api-key"}, transport=httpx.MockTransport(self))
        return Auth(http, store=store)


class TestClassify:
    @pytest.mark.parametrize("message,expected", [
        ("INVALID_PASSWORD", AuthFailure.BAD_CREDENTIALS),
        ("EMAIL_NOT_FOUND", AuthFailure.BAD_CREDENTIALS),
        ("INVALID_LOGIN_CREDENTIALS", AuthFailure.BAD_CREDENTIALS),
        ("EMAIL_EXISTS", AuthFailure.DUPLICATE_ACCOUNT),
        ("WEAK_PASSWORD : Password should be at least 6 characters", AuthFailure.WEAK_SECRET),
        ("TOO_MANY_ATTEMPTS_TRY_LATER", AuthFailure.GENERIC),
    ])
    def test_backend_codes(self, message, expected):
        err = BearBooError("http_error", "HTTP 400", details={"status": 400, "body": {"error": {"message": message}}})
        assert classify(err) == expected

    def test_unknown_errors_are_generic(self):
        assert classify(RuntimeError("boom")) == AuthFailure.GENERIC
        assert classify(AuthError("network down")) == AuthFailure.GENERIC


class TestLogin:
    @pytest.mark.asyncio
    async def test_success_notifies_listeners(self):
        fake = FakeIdentity()
        auth = fake.auth()
        seen = []
        remove = auth.on_auth_change(seen.append)

        result = await auth.login("a@example.com", "secret")
        assert result.success
        assert result.user.id == "u1"
        assert result.user.id_token == "id-token"
        assert auth.current_user() == result.user
        assert seen == [None, result.user]

        request = fake.requests[0]
        assert request.url.path == "/v1/accounts:signInWithPassword"
        assert request.url.params["key"] == "api-key"
        assert "auth" not in request.url.params

        remove()
        await auth.logout()
        assert seen == [None, result.user]
        assert auth.current_user() is None

    @pytest.mark.asyncio
    async def test_bad_password(self):
        fake = FakeIdentity()
        fake.responses["accounts:signInWithPassword"] = error("INVALID_PASSWORD")
        result = await fake.auth().login("a@example.com", "wrong")
        assert not result.success
        assert result.failure == AuthFailure.BAD_CREDENTIALS
        assert result.message == AUTH_FAILURE_MESSAGES[AuthFailure.BAD_CREDENTIALS]

    @pytest.mark.asyncio
    async def test_sign_in_raises(self):
        fake = FakeIdentity()
        fake.responses["accounts:signInWithPassword"] = error("USER_DISABLED")
        with pytest.raises(AuthError):
            await fake.auth().sign_in("a@example.com", "x")


class TestRegister:
    @pytest.mark.asyncio
    async def test_creates_profile_and_sets_name(self):
        fake = FakeIdentity()
        store = MemoryStore()
        result = await fake.auth(store).register("b@example.com", "secret1", "Bob")
        assert result.success
        assert result.user.display_name == "Bob"

        update = fake.requests[1]
        assert update.url.path == "/v1/accounts:update"
        assert json.loads(update.content)["displayName"] == "Bob"

        profile = await store.get("users/u1")
        assert profile["displayName"] == "Bob"
        assert profile["email"] == "b@example.com"

    @pytest.mark.asyncio
    async def test_duplicate(self):
        fake = FakeIdentity()
        fake.responses["accounts:signUp"] = error("EMAIL_EXISTS")
        result = await fake.auth().register("b@example.com", "secret1", "Bob")
        assert result.failure == AuthFailure.DUPLICATE_ACCOUNT

    @pytest.mark.asyncio
    async def test_weak_password(self):
        fake = FakeIdentity()
        fake.responses["accounts:signUp"] = error("WEAK_PASSWORD : Password should be at least 6 characters")
        result = await fake.auth().register("b@example.com", "123", "Bob")
        assert result.failure == AuthFailure.WEAK_SECRET


class TestTokens:
    @pytest.mark.asyncio
    async def test_password_reset(self):
        fake = FakeIdentity()
        assert (await fake.auth().send_password_reset("a@example.com")).success
        assert json.loads(fake.requests[0].content) == {"requestType": "PASSWORD_RESET", "email": "a@example.com"}

    @pytest.mark.asyncio
    async def test_refresh(self):
        fake = FakeIdentity()
        auth = fake.auth()
        auth.restore(AuthUser(id="u1", id_token="old", refresh_token="r"))
        result = await auth.refresh()
        assert result.success
        assert auth.current_user().id_token == "new-id"
        assert fake.requests[0].url.host == "securetoken.googleapis.com"

    @pytest.mark.asyncio
    async def test_refresh_without_user(self):
        result = await FakeIdentity().auth().refresh()
        assert result.failure == AuthFailure.GENERIC


    @pytest.mark.asyncio
    async def test_non_json_response_is_a_failure(self):
        fake = FakeIdentity()
        fake.responses["accounts:signInWithPassword"] = httpx.Response(200, text="<html>proxy</html>")
        result = await fake.auth().login("a@example.com", "pw")
        assert not result.success
        assert result.failure == AuthFailure.GENERIC


class TestClientTokenRefresh:
    @pytest.mark.asyncio
    async def test_expired_database_token_is_refreshed(self):
        fake = FakeIdentity()

        def route(request):
            if request.url.host != "db.example.com":
                return fake(request)
            if request.url.params.get("auth") == "new-id":
                return httpx.Response(200, json={"displayName": "Bob"})
            return httpx.Response(401, json={"error": "Auth token is expired"})

        client = AsyncBearBoo(
            api_key="api-key",
            database_url="https://db.example.com",
            user=AuthUser(id="u1", id_token="old", refresh_token="r"),
            transport=httpx.MockTransport(route),
        )
        assert await client.rooms.get_profile("bob") == {"displayName": "Bob"}
        assert client.auth.current_user().id_token == "new-id"
        assert client.auth.current_user().refresh_token == "new-refresh"
        await client.close()


def test_local_identity():
    user = LocalIdentity("Mochi").current_user()
    assert user.id == "Mochi"
    assert user.label == "Mochi"
