"""Pure helpers for deriving and checking context snapshots.

Nothing here touches a ContextStore; functions take plain values and return
new ones so they can be exercised with literal path strings in tests.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from typing import NamedTuple
from urllib.parse import urlsplit

from src.constants import DEFAULT_PAGE, MAX_USER_AGENT_LENGTH, THEME_SYSTEM
from src.context.snapshot import ContextSnapshot, Theme


class PageLocation(NamedTuple):
    page: str
    section: str | None = None


@dataclass(frozen=True)
class EnvironmentSignals:
    """Ambient signals reported by an interactive host (the browser).

    Any field may be unknown (None) until the host reports it.
    """

    path: str = "/"
    user_agent: str | None = None
    prefers_dark: bool | None = None
    interactive: bool = True


@dataclass
class ContextValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def extract_page_from_path(path: str) -> PageLocation:
    """Parse a route path into a logical page and optional section.

    "/projects/featured" -> ("projects", "featured")
    "/about#bio"         -> ("about", "bio")
    "/about?tab=1#bio"   -> ("about", "bio")
    "/" or "/index"      -> ("home", None)
    """
    if not path or not isinstance(path, str):
        return PageLocation(DEFAULT_PAGE)

    try:
        parts = urlsplit(path.strip())
    except ValueError:
        return PageLocation(DEFAULT_PAGE)
    route = parts.path
    if parts.netloc and not parts.scheme:
        # "//resume" parses as a network location; treat it as a path segment.
        route = f"{parts.netloc}/{parts.path}"
    clean = route.strip("/").lower()
    anchor = parts.fragment.strip().lower() or None

    if not clean or clean == "index":
        return PageLocation(DEFAULT_PAGE, anchor)

    segments = [s for s in clean.split("/") if s]
    section = segments[1] if len(segments) > 1 else anchor
    return PageLocation(segments[0], section)


def page_section_to_path(page: str, section: str | None = None) -> str:
    """Inverse of extract_page_from_path; sections become in-page anchors."""
    page = (page or DEFAULT_PAGE).strip().lower()
    path = "/" if page == DEFAULT_PAGE else f"/{page}"
    if section and section.strip():
        path += f"#{section.strip().lower()}"
    return path


def generate_session_id(prefix: str = "session") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


def detect_system_theme(
    signals: EnvironmentSignals | None, default: Theme = Theme.light
) -> Theme:
    if signals is None or signals.prefers_dark is None:
        return default
    return Theme.dark if signals.prefers_dark else Theme.light


def resolve_theme_signal(value: str | None, system_theme: Theme | str | None) -> Theme | None:
    """Map a theme-resolution signal ("light" | "dark" | "system") to a Theme.

    "system" defers to the OS/browser preference; None when that preference
    is not known yet or the signal is unrecognized.
    """
    if value == THEME_SYSTEM:
        return Theme.parse(system_theme)
    return Theme.parse(value)


def sanitize_user_agent(user_agent: str | None) -> str | None:
    if not user_agent or not isinstance(user_agent, str):
        return None
    cleaned = user_agent.strip()[:MAX_USER_AGENT_LENGTH]
    return cleaned or None


def create_browser_context(
    initial: dict | None = None,
    signals: EnvironmentSignals | None = None,
    *,
    default_theme: Theme = Theme.light,
) -> ContextSnapshot:
    """Initial snapshot for an interactive page; caller overrides win."""
    signals = signals or EnvironmentSignals()
    location = extract_page_from_path(signals.path)
    values: dict = {
        "current_page": location.page,
        "current_section": location.section,
        "theme": detect_system_theme(signals, default_theme),
        "session_id": generate_session_id(),
        "user_agent": sanitize_user_agent(signals.user_agent),
    }
    return _apply_initial(values, initial)


def create_server_context(
    default_page: str = DEFAULT_PAGE,
    initial: dict | None = None,
    *,
    default_theme: Theme = Theme.light,
) -> ContextSnapshot:
    """Initial snapshot for a non-interactive render. Reads no host signals."""
    values: dict = {
        "current_page": default_page,
        "current_section": None,
        "theme": default_theme,
        "session_id": generate_session_id("server-session"),
        "user_agent": None,
    }
    return _apply_initial(values, initial)


def _apply_initial(values: dict, initial: dict | None) -> ContextSnapshot:
    if initial:
        unknown = set(initial) - {f.name for f in fields(ContextSnapshot)}
        if unknown:
            raise TypeError(f"Unknown context fields: {sorted(unknown)}")
        values.update(initial)
    theme = Theme.parse(values["theme"])
    if theme is None:
        raise ValueError(f"theme must be 'light' or 'dark' (got {values['theme']!r})")
    values["theme"] = theme
    return ContextSnapshot(**values)


def validate_context(
    snapshot: ContextSnapshot, known_pages: Iterable[str] | None = None
) -> ContextValidation:
    """Diagnostic check of a snapshot. Never raises and never blocks updates."""
    result = ContextValidation(valid=True)

    if not isinstance(snapshot.current_page, str) or not snapshot.current_page.strip():
        result.errors.append("current_page is required and must be a non-empty string")
    elif known_pages is not None and snapshot.current_page not in set(known_pages):
        result.warnings.append(f"current_page {snapshot.current_page!r} is not a known page")

    if Theme.parse(snapshot.theme) is None:
        result.errors.append(f"theme must be 'light' or 'dark' (got {snapshot.theme!r})")

    if not isinstance(snapshot.session_id, str) or not snapshot.session_id.strip():
        result.errors.append("session_id is required and must be a non-empty string")

    if snapshot.current_section is not None and not isinstance(snapshot.current_section, str):
        result.errors.append("current_section must be a string if provided")

    if snapshot.user_agent is None:
        result.warnings.append("user_agent not reported yet")

    result.valid = not result.errors
    return result


def context_differences(before: ContextSnapshot, after: ContextSnapshot) -> dict:
    """Fields whose value changed, mapped to their new value."""
    return {
        f.name: getattr(after, f.name)
        for f in fields(ContextSnapshot)
        if getattr(before, f.name) != getattr(after, f.name)
    }


def has_significant_change(before: ContextSnapshot, after: ContextSnapshot) -> bool:
    """Page, section or theme changed. Session and user agent do not count."""
    return (
        before.current_page != after.current_page
        or before.current_section != after.current_section
        or before.theme != after.theme
    )
