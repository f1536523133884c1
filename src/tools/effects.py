"""UI intents produced by tools and the single place they are applied.

Tool handlers return UIAction values instead of touching the page. The
EffectApplier owned by the registry applies them after the handler succeeds:
theme changes go through the ContextStore, everything else is handed to the
PageHost that talks to the browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

import structlog

from src.context.snapshot import Theme
from src.infra.errors import HandlerError

if TYPE_CHECKING:
    from src.context.store import ContextStore

logger = structlog.get_logger()


class ActionType(StrEnum):
    theme = "theme"
    download = "download"
    navigate = "navigate"
    open_modal = "open_modal"
    close_modal = "close_modal"
    scroll = "scroll"
    focus = "focus"
    highlight = "highlight"
    show = "show"
    hide = "hide"


@dataclass(frozen=True)
class UIAction:
    type: ActionType
    target: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.type.value, "target": self.target, "data": dict(self.data)}


class PageHost(Protocol):
    """The live page. Implementations forward actions to the browser."""

    async def perform(self, action: UIAction) -> None: ...


class BufferedPageHost:
    """Collects actions in order for an outbound channel to flush."""

    def __init__(self) -> None:
        self._actions: list[UIAction] = []

    async def perform(self, action: UIAction) -> None:
        self._actions.append(action)

    @property
    def pending(self) -> list[UIAction]:
        return list(self._actions)

    def drain(self) -> list[UIAction]:
        actions, self._actions = self._actions, []
        return actions


class EffectApplier:
    def __init__(self, store: ContextStore, host: PageHost | None = None) -> None:
        self._store = store
        self._host = host

    async def apply(self, actions: tuple[UIAction, ...] | list[UIAction]) -> None:
        """Apply actions, raising HandlerError if any of them cannot be applied.

        All actions are checked before any is applied. Page actions then go
        to the host in order, and theme changes reach the store only after
        every page action succeeded. A host failure midway can still leave
        earlier page actions performed; the store is left untouched.
        """
        themes: list[Theme] = []
        page_actions: list[UIAction] = []
        for action in actions:
            if action.type is ActionType.theme:
                theme = Theme.parse(action.target)
                if theme is None:
                    raise HandlerError(f"Cannot apply theme {action.target!r}")
                themes.append(theme)
            else:
                page_actions.append(action)

        if page_actions and self._host is None:
            first = page_actions[0]
            raise HandlerError(f"No page attached to perform '{first.type}' on {first.target!r}")

        for action in page_actions:
            try:
                await self._host.perform(action)
            except HandlerError:
                raise
            except Exception as e:
                logger.exception("ui_action_failed", action=action.type.value, target=action.target)
                raise HandlerError(f"Page failed to perform '{action.type}': {e}") from e
            logger.debug("ui_action_applied", action=action.type.value, target=action.target)

        for theme in themes:
            self._store.set_theme(theme)
