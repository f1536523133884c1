from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from src.constants import KNOWN_PAGES, PAGE_SECTIONS
from src.context.utils import page_section_to_path
from src.infra.errors import HandlerError
from src.tools.base import BaseTool, ToolCategory, ToolOutcome
from src.tools.effects import ActionType, UIAction
from src.tools.schema import object_schema, string_param

if TYPE_CHECKING:
    from src.context.snapshot import ContextSnapshot


class NavigateToPageTool(BaseTool):
    """Sends the visitor to another page, optionally to a section on it."""

    def __init__(
        self,
        pages: Iterable[str] = KNOWN_PAGES,
        sections: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self._pages = list(dict.fromkeys(p.strip().lower() for p in pages if p.strip()))
        if not self._pages:
            raise ValueError("NavigateToPageTool needs at least one page")
        source = PAGE_SECTIONS if sections is None else sections
        self._sections = {page: tuple(names) for page, names in source.items()}

    @property
    def name(self) -> str:
        return "navigate_to_page"

    @property
    def description(self) -> str:
        return (
            "Navigate to a page of the site, optionally scrolling to a section on it. "
            f"Pages: {', '.join(self._pages)}."
        )

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.navigation

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "page": string_param("The page to navigate to.", enum=self._pages),
                "section": string_param("Optional section within the page to scroll to."),
                "smooth": {
                    "type": "boolean",
                    "description": "Whether to scroll smoothly to the section. Defaults to true.",
                },
            },
            required=["page"],
        )

    async def execute(
        self, arguments: dict, context: ContextSnapshot | None = None
    ) -> ToolOutcome:
        page = arguments["page"]
        section = (arguments.get("section") or "").strip().lower() or None
        smooth = arguments.get("smooth", True)

        known_sections = self._sections.get(page)
        if section and known_sections and section not in known_sections:
            raise HandlerError(
                f"Invalid section {section!r} for page {page!r}. "
                f"Valid sections are: {', '.join(known_sections)}",
                code="INVALID_SECTION",
            )

        path = page_section_to_path(page, section)
        is_current_page = context is not None and context.current_page == page
        return ToolOutcome(
            data={
                "page": page,
                "path": path,
                "section": section,
                "smooth": smooth,
                "is_current_page": is_current_page,
                "message": _navigation_message(page, section, is_current_page),
            },
            actions=(
                UIAction(
                    ActionType.navigate,
                    path,
                    {
                        "page": page,
                        "section": section,
                        "smooth": smooth,
                        "is_current_page": is_current_page,
                    },
                ),
            ),
        )


def _navigation_message(page: str, section: str | None, is_current_page: bool) -> str:
    if is_current_page and section:
        return f"Scrolling to the {section} section on the current page."
    if is_current_page:
        return f"You're already on the {page} page."
    if section:
        return f"Navigating to the {page} page and scrolling to the {section} section."
    return f"Navigating to the {page} page."
