"""
BearBoo error types.

Everything raised by the store, auth and session layers derives from
BearBooError so callers at the UI boundary can catch a single type.
"""

from typing import Any, Optional


class BearBooError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class AuthError(BearBooError):
    def __init__(self, message: str, code: str = "auth_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class StoreError(BearBooError):
    def __init__(self, message: str, code: str = "store_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SubscriptionError(StoreError):
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="subscription_error", details={"path": path} if path else None)


class SessionError(BearBooError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)
