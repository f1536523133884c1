from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from src.constants import KNOWN_PAGES
from src.infra.errors import DuplicateToolError
from src.tools.builtins.manage_ui_state import ManageUIStateTool
from src.tools.builtins.navigate_to_page import NavigateToPageTool
from src.tools.builtins.toggle_theme import ToggleThemeTool
from src.tools.builtins.trigger_download import ResourceCatalog, TriggerDownloadTool
from src.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from src.config.settings import ToolSettings

UI_CONTROL_TOOL_NAMES = ("toggle_theme", "trigger_download", "manage_ui_state")
NAVIGATION_TOOL_NAMES = ("navigate_to_page",)


def default_resources(settings: ToolSettings | None = None) -> ResourceCatalog:
    if settings is None:
        return ResourceCatalog({"resume": "/resume.pdf"})
    return ResourceCatalog(
        {"resume": settings.resume_path}, base_url=settings.resource_base_url
    )


def initialize_ui_control_tools(
    registry: ToolRegistry,
    *,
    resources: ResourceCatalog | None = None,
) -> None:
    """Register the theme, download and UI-state tools with the registry.

    Not idempotent: a second call without registry.clear_all_tools() raises
    DuplicateToolError so accidental double initialization is visible.
    Nothing is registered if any of the names is already taken.
    """
    tools = [
        ToggleThemeTool(),
        TriggerDownloadTool(resources or default_resources()),
        ManageUIStateTool(),
    ]
    for tool in tools:
        if registry.has(tool.name):
            raise DuplicateToolError(tool.name)
    for tool in tools:
        registry.register(tool)


def initialize_navigation_tools(
    registry: ToolRegistry, *, pages: Iterable[str] = KNOWN_PAGES
) -> None:
    """Register navigate_to_page for the given pages.

    Raises DuplicateToolError, registering nothing, if the name is taken.
    """
    registry.register(NavigateToPageTool(pages))
