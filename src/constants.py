"""Shared constants for the navigator runtime."""

THEMES = ("light", "dark")
THEME_SYSTEM = "system"

DEFAULT_PAGE = "home"
KNOWN_PAGES = ("home", "about", "projects", "resume", "contact")

DEFAULT_HISTORY_CAPACITY = 100
MAX_HISTORY_CAPACITY = 10_000

MAX_USER_AGENT_LENGTH = 500

# Sections a navigation target may name; pages missing here accept any section.
PAGE_SECTIONS: dict[str, tuple[str, ...]] = {
    "home": ("hero", "stats", "skills"),
    "about": ("hero", "experience", "background"),
    "projects": ("showcase", "filters"),
    "resume": ("display", "download"),
}
