import hmac
import os
from dataclasses import dataclass, field

from fastapi import Request

KEY_HEADER = "X-Sitegate-Key"
KEY_COOKIE = "sitegate_key"
MANAGE_SETTINGS = "manage_settings"


class UnauthorizedError(Exception):
    pass


@dataclass(frozen=True)
class CurrentUser:
    authenticated: bool = False
    capabilities: frozenset[str] = field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        return self.authenticated and capability in self.capabilities


ANONYMOUS = CurrentUser()


def _keys_from_env(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def get_admin_keys() -> list[str]:
    return _keys_from_env("SITEGATE_ADMIN_KEYS")


def get_member_keys() -> list[str]:
    return _keys_from_env("SITEGATE_MEMBER_KEYS")


def _matches_any(provided: str, allowed_keys: list[str]) -> bool:
    ok = False
    for allowed_key in allowed_keys:
        ok |= hmac.compare_digest(provided.encode("utf-8"), allowed_key.encode("utf-8"))
    return ok


def resolve_current_user(request: Request) -> CurrentUser:
    provided = request.headers.get(KEY_HEADER, "") or request.cookies.get(KEY_COOKIE, "")
    if not provided:
        return ANONYMOUS
    if _matches_any(provided, get_admin_keys()):
        return CurrentUser(authenticated=True, capabilities=frozenset({MANAGE_SETTINGS}))
    if _matches_any(provided, get_member_keys()):
        return CurrentUser(authenticated=True)
    return ANONYMOUS


def require_authenticated(request: Request) -> CurrentUser:
    user = resolve_current_user(request)
    if not user.authenticated:
        raise UnauthorizedError("Authentication required.")
    return user
