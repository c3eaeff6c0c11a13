"""
Auth over the Firebase Auth REST API (identitytoolkit).

The public operations (login, register, logout, send_password_reset,
refresh) never raise: they return an AuthResult whose ``failure`` is one of a
few user-facing categories. The ``sign_in``/``sign_up`` primitives raise
AuthError for callers that want the exception.
"""

import logging
import time
from typing import Any, Callable, Optional

import httpx

from bearboo.errors import AuthError, BearBooError, StoreError
from bearboo.models.session import AuthFailure, AuthResult, AuthUser
from bearboo.transport.http import HttpClient
from bearboo.transport.store import RealtimeStore

logger = logging.getLogger("bearboo.auth")

IDENTITY_URL = "https://identitytoolkit.googleapis.com/v1"
TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

AuthListener = Callable[[Optional[AuthUser]], None]

_FAILURES = {
    "EMAIL_NOT_FOUND": AuthFailure.BAD_CREDENTIALS,
    "INVALID_PASSWORD": AuthFailure.BAD_CREDENTIALS,
    "INVALID_LOGIN_CREDENTIALS": AuthFailure.BAD_CREDENTIALS,
    "INVALID_EMAIL": AuthFailure.BAD_CREDENTIALS,
    "USER_DISABLED": AuthFailure.BAD_CREDENTIALS,
    "EMAIL_EXISTS": AuthFailure.DUPLICATE_ACCOUNT,
    "WEAK_PASSWORD": AuthFailure.WEAK_SECRET,
}


def classify(error: BaseException) -> AuthFailure:
    """Map whatever the auth backend raised onto a user-facing category."""
    details = getattr(error, "details", None) or {}
    body = details.get("body")
    code = ""
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            code = str(err.get("message", ""))
    if not code and isinstance(error, AuthError):
        code = error.code
    # WEAK_PASSWORD comes back as "WEAK_PASSWORD : Password should be ..."
    code = code.split(":", 1)[0].strip().upper()
    for value in AuthFailure:
        if code == value.value.upper():
            return value
    return _FAILURES.get(code, AuthFailure.GENERIC)


class Auth:
    def __init__(self, http: HttpClient, store: Optional[RealtimeStore] = None):
        self._http = http
        self._store = store
        self._user: Optional[AuthUser] = None
        self._listeners: list[AuthListener] = []

    def current_user(self) -> Optional[AuthUser]:
        return self._user

    def on_auth_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; it is called at once with the current user. Returns a remover."""
        self._listeners.append(listener)
        listener(self._user)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def restore(self, user: Optional[AuthUser]) -> None:
        """Adopt a previously saved user without contacting the backend."""
        self._set_user(user)

    def _set_user(self, user: Optional[AuthUser]) -> None:
        self._user = user
        for listener in list(self._listeners):
            listener(user)

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self._http.post(url, body, authenticated=False)
        except BearBooError as e:
            raise AuthError(str(e), details=e.details)
        except httpx.HTTPError as e:
            raise AuthError(f"Auth request failed: {e}")

    async def sign_in(self, email: str, password: str) -> AuthUser:
        data = await self._post("/accounts:signInWithPassword", {
            "email": email, "password": password, "returnSecureToken": True,
        })
        return AuthUser(
            id=data["localId"],
            email=data.get("email", email),
            display_name=data.get("displayName") or None,
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    async def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> AuthUser:
        data = await self._post("/accounts:signUp", {
            "email": email, "password": password, "returnSecureToken": True,
        })
        user = AuthUser(
            id=data["localId"],
            email=data.get("email", email),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )
        if display_name:
            await self._post("/accounts:update", {
                "idToken": user.id_token, "displayName": display_name, "returnSecureToken": False,
            })
            user.display_name = display_name
        return user

    async def login(self, email: str, password: str) -> AuthResult:
        try:
            user = await self.sign_in(email, password)
        except AuthError as e:
            logger.info(f"Login failed: {e}")
            return AuthResult.failed(classify(e))
        self._set_user(user)
        return AuthResult.ok(user)

    async def register(self, email: str, password: str, display_name: str) -> AuthResult:
        try:
            user = await self.sign_up(email, password, display_name)
        except AuthError as e:
            logger.info(f"Registration failed: {e}")
            return AuthResult.failed(classify(e))
        self._set_user(user)
        if self._store is not None:
            try:
                await self._store.set(f"users/{user.id}", {
                    "email": email,
                    "displayName": display_name,
                    "createdAt": int(time.time() * 1000),
                })
            except StoreError as e:
                logger.warning(f"Could not create profile for {user.id}: {e}")
        return AuthResult.ok(user)

    async def logout(self) -> AuthResult:
        self._set_user(None)
        return AuthResult.ok()

    async def send_password_reset(self, email: str) -> AuthResult:
        try:
            await self._post("/accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        except AuthError as e:
            logger.info(f"Password reset failed: {e}")
            return AuthResult.failed(AuthFailure.GENERIC)
        return AuthResult.ok()

    async def refresh(self) -> AuthResult:
        """Exchange the refresh token for a fresh id token."""
        user = self._user
        if user is None or not user.refresh_token:
            return AuthResult.failed(AuthFailure.GENERIC)
        try:
            data = await self._post(TOKEN_URL, {"grant_type": "refresh_token", "refresh_token": user.refresh_token})
        except AuthError as e:
            logger.info(f"Token refresh failed: {e}")
            return AuthResult.failed(classify(e))
        refreshed = user.model_copy(update={
            "id_token": data.get("id_token", user.id_token),
            "refresh_token": data.get("refresh_token", user.refresh_token),
        })
        self._set_user(refreshed)
        return AuthResult.ok(refreshed)


class LocalIdentity:
    """Auth adapter for the room-code variant: no account, the display name
    is the identity and doubles as the sender reference."""

    def __init__(self, display_name: str):
        self._user = AuthUser(id=display_name, display_name=display_name)

    def current_user(self) -> Optional[AuthUser]:
        return self._user
