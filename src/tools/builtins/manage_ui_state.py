from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from src.infra.errors import HandlerError, UnknownActionError
from src.tools.base import BaseTool, ToolOutcome
from src.tools.effects import ActionType, UIAction
from src.tools.schema import object_schema, string_param

if TYPE_CHECKING:
    from src.context.snapshot import ContextSnapshot

_ELEMENT_ACTIONS = {
    "focus": ActionType.focus,
    "highlight": ActionType.highlight,
    "show": ActionType.show,
    "hide": ActionType.hide,
}


def _require_str(payload: dict, key: str, action: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise HandlerError(f"Action '{action}' requires payload.{key} (non-empty string)")
    return value.strip()


class ManageUIStateTool(BaseTool):
    """Generic envelope for page state changes without a dedicated tool.

    Dispatches on ``action`` to a fixed table of sub-operations; anything
    outside the table is an UnknownActionError.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[str, dict, ContextSnapshot | None], UIAction]] = {
            "open_modal": self._open_modal,
            "close_modal": self._close_modal,
            "scroll_to": self._scroll_to,
            **{name: self._element_action for name in _ELEMENT_ACTIONS},
        }

    @property
    def known_actions(self) -> list[str]:
        return list(self._handlers)

    @property
    def name(self) -> str:
        return "manage_ui_state"

    @property
    def description(self) -> str:
        return (
            "Change page UI state: open or close a modal, scroll to a section, "
            "or focus/highlight/show/hide an element. "
            f"Supported actions: {', '.join(self.known_actions)}."
        )

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "action": string_param("UI action to perform."),
                "payload": {
                    "type": "object",
                    "description": (
                        "Action arguments, e.g. {\"modal\": \"contact\"} for open_modal "
                        "or {\"target\": \"skills\"} for scroll_to."
                    ),
                },
            },
            required=["action"],
        )

    async def execute(
        self, arguments: dict, context: ContextSnapshot | None = None
    ) -> ToolOutcome:
        action = arguments["action"].strip().lower()
        handler = self._handlers.get(action)
        if handler is None:
            raise UnknownActionError(arguments["action"], self.known_actions)

        payload = arguments.get("payload") or {}
        ui_action = handler(action, payload, context)
        return ToolOutcome(
            data={"action": action, "target": ui_action.target},
            actions=(ui_action,),
        )

    def _open_modal(
        self, action: str, payload: dict, context: ContextSnapshot | None
    ) -> UIAction:
        modal = _require_str(payload, "modal", "open_modal")
        data = payload.get("data", {})
        if not isinstance(data, dict):
            raise HandlerError("open_modal payload.data must be an object")
        return UIAction(ActionType.open_modal, modal, dict(data))

    def _close_modal(
        self, action: str, payload: dict, context: ContextSnapshot | None
    ) -> UIAction:
        modal = payload.get("modal")
        if isinstance(modal, str) and modal.strip():
            return UIAction(ActionType.close_modal, modal.strip())
        return UIAction(ActionType.close_modal, "*")

    def _scroll_to(
        self, action: str, payload: dict, context: ContextSnapshot | None
    ) -> UIAction:
        target = _require_str(payload, "target", "scroll_to")
        smooth = payload.get("smooth", True)
        offset = payload.get("offset", 0)
        if not isinstance(smooth, bool) or isinstance(offset, bool) or not isinstance(offset, int | float):
            raise HandlerError("scroll_to expects payload.smooth (bool) and payload.offset (number)")
        data = {"smooth": smooth, "offset": offset}
        if context is not None:
            data["page"] = context.current_page
        return UIAction(ActionType.scroll, target, data)

    def _element_action(
        self, action: str, payload: dict, context: ContextSnapshot | None
    ) -> UIAction:
        target = _require_str(payload, "target", action)
        return UIAction(_ELEMENT_ACTIONS[action], target)
