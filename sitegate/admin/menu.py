from collections.abc import Callable
from dataclasses import dataclass, field

from markupsafe import Markup

from sitegate.auth.users import CurrentUser

SETTINGS_PAGE_SLUG = "maintenance-mode"


def settings_page_url(admin_prefix: str, slug: str = SETTINGS_PAGE_SLUG) -> str:
    return f"{admin_prefix.rstrip('/')}/settings/{slug}"


@dataclass(frozen=True)
class MenuEntry:
    page_title: str
    menu_title: str
    capability: str
    slug: str
    url: str


@dataclass
class Extension:
    name: str
    description: str
    action_links: list[Markup] = field(default_factory=list)


class AdminMenu:
    def __init__(self, admin_prefix: str) -> None:
        self.admin_prefix = admin_prefix
        self._entries: dict[str, MenuEntry] = {}

    def add_options_page(self, page_title: str, menu_title: str, capability: str, slug: str) -> MenuEntry:
        entry = MenuEntry(
            page_title=page_title,
            menu_title=menu_title,
            capability=capability,
            slug=slug,
            url=settings_page_url(self.admin_prefix, slug),
        )
        self._entries[slug] = entry
        return entry

    def visible_to(self, user: CurrentUser) -> list[MenuEntry]:
        return [entry for entry in self._entries.values() if user.can(entry.capability)]


class ExtensionRegistry:
    def __init__(self) -> None:
        self._extensions: list[Extension] = []
        self._link_filters: dict[str, list[Callable[[list[Markup]], list[Markup]]]] = {}

    def register(self, extension: Extension) -> None:
        self._extensions.append(extension)

    def add_action_links_filter(self, name: str, link_filter: Callable[[list[Markup]], list[Markup]]) -> None:
        self._link_filters.setdefault(name, []).append(link_filter)

    def listing(self) -> list[Extension]:
        listed = []
        for extension in self._extensions:
            links = list(extension.action_links)
            for link_filter in self._link_filters.get(extension.name, []):
                links = link_filter(links)
            listed.append(Extension(name=extension.name, description=extension.description, action_links=links))
        return listed


def settings_action_links(links: list[Markup], settings_url: str) -> list[Markup]:
    """Put the settings link first in an extension's action links."""
    settings_link = Markup('<a href="{}">Settings</a>').format(settings_url)
    return [settings_link, *links]
