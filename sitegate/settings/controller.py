import logging
from collections.abc import Mapping
from dataclasses import dataclass

from sitegate.auth.users import MANAGE_SETTINGS, CurrentUser
from sitegate.observability.logging import log_event
from sitegate.rendering import PageRenderer
from sitegate.settings.sanitize import sanitize_text_field, sanitize_textarea_field
from sitegate.settings.store import ConfigStore
from sitegate.storage.base import StorageFailedError

logger = logging.getLogger("sitegate.settings")

ACTIVATE_FIELD = "save_activate"
DEACTIVATE_FIELD = "save_deactivate"
HEADING_FIELD = "maintenance_mode_heading"
MESSAGE_FIELD = "maintenance_mode_message"
SECRET_PHRASE_FIELD = "maintenance_mode_secret_phrase"
SHOW_ADVANCED_FIELD = "show_advanced_options"

ACTIVATED_NOTICE = "Maintenance mode activated successfully."
DEACTIVATED_NOTICE = "Maintenance mode deactivated successfully."
SAVE_FAILED_ERROR = "Settings could not be saved."
SETTINGS_TEMPLATE = "settings.html.j2"


@dataclass(frozen=True)
class SettingsPage:
    body: str
    notice: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class Unauthorized:
    pass


SettingsOutcome = SettingsPage | Unauthorized


class SettingsController:
    def __init__(self, store: ConfigStore, renderer: PageRenderer | None = None) -> None:
        self.store = store
        self.renderer = renderer or PageRenderer()

    def handle_submit(self, form_data: Mapping[str, str], current_user: CurrentUser) -> SettingsOutcome:
        """Apply a settings submission and render the form back.

        An empty submission only renders the current state. Each field is
        written on its own, so a failing write leaves the earlier ones in place.
        """
        if not current_user.can(MANAGE_SETTINGS):
            log_event(logger, {"event": "settings.unauthorized"})
            return Unauthorized()

        notice = None
        error = None
        saved: list[str] = []
        try:
            if ACTIVATE_FIELD in form_data:
                self.store.set_enabled(True)
                saved.append("enabled")
                notice = ACTIVATED_NOTICE
            elif DEACTIVATE_FIELD in form_data:
                self.store.set_enabled(False)
                saved.append("enabled")
                notice = DEACTIVATED_NOTICE

            if HEADING_FIELD in form_data:
                self.store.set_heading(sanitize_text_field(form_data[HEADING_FIELD]))
                saved.append("heading")
            if MESSAGE_FIELD in form_data:
                self.store.set_message(sanitize_textarea_field(form_data[MESSAGE_FIELD]))
                saved.append("message")
            if SECRET_PHRASE_FIELD in form_data:
                self.store.set_secret_phrase(sanitize_text_field(form_data[SECRET_PHRASE_FIELD]))
                saved.append("secret_phrase")
        except StorageFailedError:
            notice = None
            error = SAVE_FAILED_ERROR
            log_event(logger, {"event": "settings.save_failed", "saved_fields": saved}, level=logging.ERROR)
        else:
            if saved:
                log_event(logger, {"event": "settings.saved", "saved_fields": saved})

        show_advanced = form_data.get(SHOW_ADVANCED_FIELD) == "true"
        config = self.store.load()
        body = self.renderer.render(
            SETTINGS_TEMPLATE,
            notice=notice,
            error=error,
            status="Activated" if config.enabled else "Deactivated",
            heading=config.heading,
            message=config.message,
            secret_phrase=config.secret_phrase,
            show_advanced=show_advanced,
            advanced_link_text="Hide Advanced Options" if show_advanced else "Show Advanced Options",
        )
        return SettingsPage(body=body, notice=notice, error=error)
