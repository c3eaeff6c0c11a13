"""
Session and identity models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or "User"


class AuthFailure(str, Enum):
    BAD_CREDENTIALS = "bad_credentials"
    DUPLICATE_ACCOUNT = "duplicate_account"
    WEAK_SECRET = "weak_secret"
    GENERIC = "generic"


AUTH_FAILURE_MESSAGES = {
    AuthFailure.BAD_CREDENTIALS: "Incorrect email or password. Please try again.",
    AuthFailure.DUPLICATE_ACCOUNT: "This email is already registered. Try logging in instead.",
    AuthFailure.WEAK_SECRET: "Password is too weak. Please use a stronger password.",
    AuthFailure.GENERIC: "Something went wrong. Please try again.",
}


class AuthResult(BaseModel):
    success: bool
    user: Optional[AuthUser] = None
    failure: Optional[AuthFailure] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, user: Optional[AuthUser] = None) -> "AuthResult":
        return cls(success=True, user=user)

    @classmethod
    def failed(cls, failure: AuthFailure) -> "AuthResult":
        return cls(success=False, failure=failure, message=AUTH_FAILURE_MESSAGES[failure])


class SessionContext(BaseModel):
    """Everything the chat reducer needs about who and where we are.

    The passphrase only ever lives here, in memory. It is not sent to the
    store and not written to the config file.
    """
    room_id: str
    passphrase: Optional[str] = None
    user: Optional[AuthUser] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    def clear_passphrase(self) -> None:
        self.passphrase = None
