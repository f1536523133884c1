from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import fields, replace

import structlog

from src.context.snapshot import ContextSnapshot, Theme
from src.context.utils import create_server_context, sanitize_user_agent

logger = structlog.get_logger()

ContextListener = Callable[[ContextSnapshot], None]

_SNAPSHOT_FIELDS = frozenset(f.name for f in fields(ContextSnapshot))


class ContextStore:
    """Single source of truth for the current page context.

    Every update replaces the snapshot and synchronously notifies listeners
    in subscription order. Updates issued from inside a listener are queued
    and run once the current notification cycle has finished, so two cycles
    never interleave. Identical snapshots still notify: the update itself
    (e.g. "a route change was observed") is the signal.
    """

    def __init__(self, initial: ContextSnapshot | None = None) -> None:
        self._snapshot = initial or create_server_context()
        self._listeners: list[ContextListener] = []
        self._pending: deque[dict] = deque()
        self._notifying = False

    def get_context(self) -> ContextSnapshot:
        return self._snapshot

    def update_context(self, **changes: object) -> None:
        """Merge changes into a new snapshot and notify subscribers.

        Raises TypeError for field names ContextSnapshot does not have.
        An unrecognized theme value is dropped; the rest of the update applies.
        """
        unknown = set(changes) - _SNAPSHOT_FIELDS
        if unknown:
            raise TypeError(f"Unknown context fields: {sorted(unknown)}")

        if "theme" in changes:
            theme = Theme.parse(changes["theme"])
            if theme is None:
                logger.warning("theme_rejected", theme=repr(changes.pop("theme")))
            else:
                changes["theme"] = theme

        self._pending.append(changes)
        if self._notifying:
            return
        self._drain()

    def set_current_page(self, page: str, section: str | None = None) -> None:
        self.update_context(current_page=page, current_section=section or None)

    def set_theme(self, theme: Theme | str) -> None:
        """Set the theme; anything but light/dark is ignored without notifying."""
        parsed = Theme.parse(theme)
        if parsed is None:
            logger.debug("theme_rejected", theme=repr(theme))
            return
        self.update_context(theme=parsed)

    def set_user_agent(self, user_agent: str | None) -> None:
        """Fill in the user agent. Empty values never erase a known one."""
        cleaned = sanitize_user_agent(user_agent)
        if cleaned is None:
            return
        self.update_context(user_agent=cleaned)

    def set_session_id(self, session_id: str) -> None:
        if not session_id or not session_id.strip():
            return
        self.update_context(session_id=session_id.strip())

    def reset(self, initial: ContextSnapshot | None = None) -> None:
        """Replace the snapshot with fresh defaults and notify.

        Queued like any other update when called from inside a listener.
        """
        fresh = initial or create_server_context()
        self._pending.append({name: getattr(fresh, name) for name in _SNAPSHOT_FIELDS})
        if self._notifying:
            return
        self._drain()

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        """Register a listener; the returned handle is safe to call repeatedly."""
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self) -> None:
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _drain(self) -> None:
        self._notifying = True
        try:
            while self._pending:
                self._snapshot = replace(self._snapshot, **self._pending.popleft())
                self._notify(self._snapshot)
        finally:
            self._notifying = False

    def _notify(self, snapshot: ContextSnapshot) -> None:
        # Snapshot the list: listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(
                    "context_listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )
