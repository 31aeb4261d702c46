import hmac
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from urllib.parse import quote, unquote

from sitegate.rendering import PageRenderer
from sitegate.schemas import MaintenanceConfig

BYPASS_COOKIE_NAME = "maintenance_mode_secret_phrase"
BYPASS_COOKIE_TTL = timedelta(days=7)
BYPASS_COOKIE_PATH = "/"
DEFAULT_ADMIN_PREFIX = "/admin"
MAINTENANCE_TEMPLATE = "maintenance.html.j2"

_renderer = PageRenderer()


@dataclass(frozen=True)
class GateRequest:
    privileged: bool
    path: str
    query_params: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BypassCookie:
    value: str
    expires_at: datetime
    name: str = BYPASS_COOKIE_NAME
    path: str = BYPASS_COOKIE_PATH
    max_age: int = int(BYPASS_COOKIE_TTL.total_seconds())


@dataclass(frozen=True)
class Admit:
    bypass_cookie: BypassCookie | None = None


@dataclass(frozen=True)
class Deny:
    body: str


Decision = Admit | Deny


def is_admin_path(path: str, admin_prefix: str = DEFAULT_ADMIN_PREFIX) -> bool:
    prefix = admin_prefix.rstrip("/")
    if not prefix:
        return False
    return path == prefix or path.startswith(f"{prefix}/")


def phrase_presented(request: GateRequest, secret_phrase: str) -> bool:
    """True when the request carries the current phrase as a query key or bypass cookie.

    An empty phrase never matches, otherwise a bare "?" would open the site.
    """
    if not secret_phrase:
        return False
    if secret_phrase in request.query_params:
        return True
    cookie_value = request.cookies.get(BYPASS_COOKIE_NAME)
    if cookie_value is None:
        return False
    # Issued values are percent-encoded; Set-Cookie headers only carry latin-1.
    return hmac.compare_digest(unquote(cookie_value).encode("utf-8"), secret_phrase.encode("utf-8"))


def encode_cookie_value(phrase: str) -> str:
    return quote(phrase, safe="")


def render_maintenance_page(config: MaintenanceConfig, renderer: PageRenderer | None = None) -> str:
    return (renderer or _renderer).render(MAINTENANCE_TEMPLATE, heading=config.heading, message=config.message)


def evaluate(
    request: GateRequest,
    config: MaintenanceConfig,
    *,
    admin_prefix: str = DEFAULT_ADMIN_PREFIX,
    now: datetime | None = None,
    renderer: PageRenderer | None = None,
) -> Decision:
    if request.privileged:
        return Admit()
    if is_admin_path(request.path, admin_prefix):
        return Admit()
    if not config.enabled:
        return Admit()
    if phrase_presented(request, config.secret_phrase):
        issued_at = now or datetime.now(timezone.utc)
        cookie = BypassCookie(value=encode_cookie_value(config.secret_phrase), expires_at=issued_at + BYPASS_COOKIE_TTL)
        return Admit(bypass_cookie=cookie)
    return Deny(body=render_maintenance_page(config, renderer))
