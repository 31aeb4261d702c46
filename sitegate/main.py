import os
from functools import partial

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, Response

from sitegate.admin.menu import AdminMenu, Extension, ExtensionRegistry, settings_action_links
from sitegate.api.exception_handlers import install_exception_handlers
from sitegate.auth.users import MANAGE_SETTINGS, CurrentUser, get_admin_keys, require_authenticated, resolve_current_user
from sitegate.maintenance.gate import DEFAULT_ADMIN_PREFIX
from sitegate.maintenance.middleware import install_maintenance_gate_middleware
from sitegate.middleware.observability import install_observability_middleware
from sitegate.observability.logging import setup_logging
from sitegate.rendering import PageRenderer
from sitegate.schemas import HealthResponse, MenuEntryResponse, MenuResponse
from sitegate.settings.controller import SettingsController, SettingsPage
from sitegate.settings.store import ConfigStore
from sitegate.storage.factory import get_storage

EXTENSION_NAME = "Minimal Maintenance Mode"
EXTENSION_DESCRIPTION = "Enable maintenance mode, show a custom message."


def _resolve_admin_prefix() -> str:
    raw = os.getenv("SITEGATE_ADMIN_PREFIX", DEFAULT_ADMIN_PREFIX).strip()
    if not raw.startswith("/"):
        raw = f"/{raw}"
    return raw.rstrip("/") or DEFAULT_ADMIN_PREFIX


def _settings_response(outcome) -> Response:
    if not isinstance(outcome, SettingsPage):
        # Callers without the capability get an empty page, not an error.
        return Response(content="", media_type="text/html")
    status_code = 500 if outcome.error else 200
    return HTMLResponse(content=outcome.body, status_code=status_code)


def create_app() -> FastAPI:
    load_dotenv()
    setup_logging()
    environment = os.getenv("SITEGATE_ENV", "dev").lower()
    if environment == "prod" and not get_admin_keys():
        raise RuntimeError("An admin key is required when SITEGATE_ENV=prod.")

    admin_prefix = _resolve_admin_prefix()
    site_name = os.getenv("SITEGATE_SITE_NAME", "Sitegate")
    store = ConfigStore(get_storage())
    renderer = PageRenderer()
    controller = SettingsController(store, renderer)

    menu = AdminMenu(admin_prefix)
    settings_entry = menu.add_options_page(
        "Maintenance Mode Settings",
        "Maintenance Mode",
        MANAGE_SETTINGS,
        "maintenance-mode",
    )
    extensions = ExtensionRegistry()
    extensions.register(Extension(name=EXTENSION_NAME, description=EXTENSION_DESCRIPTION))
    extensions.add_action_links_filter(EXTENSION_NAME, partial(settings_action_links, settings_url=settings_entry.url))

    app = FastAPI(
        title="Sitegate",
        version="0.1.0",
        docs_url=None if environment == "prod" else "/docs",
        redoc_url=None if environment == "prod" else "/redoc",
        openapi_url=None if environment == "prod" else "/openapi.json",
    )
    app.state.config_store = store
    app.state.admin_menu = menu
    app.state.extensions = extensions

    install_maintenance_gate_middleware(app, store, admin_prefix)
    install_observability_middleware(app)
    install_exception_handlers(app)

    @app.get("/", response_class=HTMLResponse)
    def home() -> HTMLResponse:
        return HTMLResponse(renderer.render("home.html.j2", site_name=site_name))

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request) -> HealthResponse:
        return HealthResponse(status="ok", maintenance=getattr(request.state, "maintenance", None))

    @app.get(settings_entry.url, response_class=HTMLResponse)
    def settings_page(request: Request) -> Response:
        outcome = controller.handle_submit({}, resolve_current_user(request))
        return _settings_response(outcome)

    @app.post(settings_entry.url, response_class=HTMLResponse)
    async def settings_submit(request: Request) -> Response:
        form = await request.form()
        form_data = {key: value for key, value in form.items() if isinstance(value, str)}
        user = resolve_current_user(request)
        outcome = await run_in_threadpool(controller.handle_submit, form_data, user)
        return _settings_response(outcome)

    @app.get(f"{admin_prefix}/extensions", response_class=HTMLResponse)
    def extension_listing(user: CurrentUser = Depends(require_authenticated)) -> HTMLResponse:  # noqa: ARG001
        return HTMLResponse(renderer.render("extensions.html.j2", extensions=extensions.listing()))

    @app.get(f"{admin_prefix}/menu", response_model=MenuResponse)
    def admin_menu(request: Request) -> MenuResponse:
        entries = [
            MenuEntryResponse(page_title=entry.page_title, menu_title=entry.menu_title, slug=entry.slug, url=entry.url)
            for entry in menu.visible_to(resolve_current_user(request))
        ]
        return MenuResponse(entries=entries)

    return app
