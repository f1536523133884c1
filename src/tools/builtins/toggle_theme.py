from __future__ import annotations

from typing import TYPE_CHECKING

from src.context.snapshot import Theme
from src.infra.errors import HandlerError
from src.tools.base import BaseTool, ToolOutcome
from src.tools.effects import ActionType, UIAction
from src.tools.schema import object_schema, string_param

if TYPE_CHECKING:
    from src.context.snapshot import ContextSnapshot


class ToggleThemeTool(BaseTool):
    """Switches the page between light and dark themes."""

    @property
    def name(self) -> str:
        return "toggle_theme"

    @property
    def description(self) -> str:
        return (
            "Switch the site between light and dark themes. "
            "Omit 'theme' to flip the current one."
        )

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "theme": string_param(
                    "Theme to set. Defaults to the opposite of the current theme.",
                    enum=[t.value for t in Theme],
                ),
            },
        )

    async def execute(
        self, arguments: dict, context: ContextSnapshot | None = None
    ) -> ToolOutcome:
        if context is None:
            raise HandlerError("Current theme is unknown; no page context was provided")

        requested = arguments.get("theme")
        target = Theme(requested) if requested else context.theme.flipped()

        return ToolOutcome(
            data={
                "previous_theme": context.theme.value,
                "theme": target.value,
                "changed": target != context.theme,
            },
            actions=(
                UIAction(
                    ActionType.theme,
                    target.value,
                    {"previous_theme": context.theme.value},
                ),
            ),
        )
