from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.context.snapshot import ContextSnapshot
    from src.tools.effects import UIAction


class ToolCategory(StrEnum):
    """Domain classification used for filtering and schema export."""

    ui_control = "ui_control"
    navigation = "navigation"
    data = "data"


@dataclass(frozen=True)
class ToolOutcome:
    """What a handler produced: data for the caller plus intents to apply.

    Handlers never touch the page directly; the registry hands ``actions``
    to its EffectApplier once the handler has returned successfully.
    """

    data: dict = field(default_factory=dict)
    actions: tuple[UIAction, ...] = ()


class BaseTool(ABC):
    """Abstract base class for assistant tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name used in function calling."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human/model-facing description of what the tool does."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict:
        """JSON Schema describing the tool's input parameters."""
        ...

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.ui_control

    @abstractmethod
    async def execute(
        self, arguments: dict, context: ContextSnapshot | None = None
    ) -> ToolOutcome | dict:
        """Run the tool against already-validated arguments.

        context is the snapshot current at invocation time. Plain dict
        results are treated as a ToolOutcome without actions.
        """
        ...
