from __future__ import annotations

import time
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from src.infra.errors import (
    DuplicateToolError,
    HandlerError,
    InvalidArgumentsError,
    NavigatorError,
    ToolError,
    UnknownToolError,
)
from src.tools.base import BaseTool, ToolCategory, ToolOutcome
from src.tools.protocol import ToolInvocationResponse
from src.tools.schema import check_parameters_schema, normalize_parameters, validate_arguments
from src.tools.tracker import ExecutionOutcome, ExecutionRecord, ExecutionTracker

if TYPE_CHECKING:
    from src.context.snapshot import ContextSnapshot
    from src.tools.effects import EffectApplier
    from src.tools.guards import ExecutionGuard

logger = structlog.get_logger()


class ToolRegistry:
    """Catalogue of assistant tools. Provides lookup, schema export and invocation.

    invoke() is the single boundary that turns every failure into a
    ToolInvocationResponse; nothing raises past it. Each call is recorded in
    the ExecutionTracker exactly once.
    """

    def __init__(
        self,
        tracker: ExecutionTracker | None = None,
        applier: EffectApplier | None = None,
        guard: ExecutionGuard | None = None,
    ) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._tracker = tracker if tracker is not None else ExecutionTracker()
        self._applier = applier
        self._guard = guard

    @property
    def tracker(self) -> ExecutionTracker:
        return self._tracker

    def register(self, tool: BaseTool) -> None:
        """Register a tool.

        Raises DuplicateToolError if the name is taken, ToolError (INVALID_TOOL)
        if the tool is malformed. The registry is unchanged on failure.
        """
        if not isinstance(tool.name, str) or not tool.name.strip():
            raise ToolError("Tool must have a non-empty name", code="INVALID_TOOL")
        if not isinstance(tool.description, str) or not tool.description.strip():
            raise ToolError(f"Tool '{tool.name}' must have a description", code="INVALID_TOOL")
        problem = check_parameters_schema(tool.parameters)
        if problem is not None:
            raise ToolError(f"Tool '{tool.name}': {problem}", code="INVALID_TOOL")
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)

        self._tools[tool.name] = tool
        logger.info("tool_registered", tool_name=tool.name, category=tool.category.value)

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name. Returns None if not found."""
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_all(self) -> list[BaseTool]:
        """Return tools in registration order."""
        return list(self._tools.values())

    def list_tools(self, category: ToolCategory | None = None) -> list[BaseTool]:
        return [
            tool for tool in self._tools.values()
            if category is None or tool.category == category
        ]

    def get_function_definitions(self) -> list[dict]:
        """Project tools into the function-calling description format.

        Output format:
        [{"name": ..., "description": ..., "parameters": {"type": "object", "properties": ..., "required": [...]}}]
        """
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": normalize_parameters(tool.parameters),
            }
            for tool in self._tools.values()
        ]

    def get_tools_schema(self) -> list[dict]:
        """Return tools in OpenAI chat-completions format.

        Output format:
        [{"type": "function", "function": {"name": ..., "description": ..., "parameters": ...}}]
        """
        return [
            {"type": "function", "function": definition}
            for definition in self.get_function_definitions()
        ]

    async def invoke(
        self,
        name: str,
        arguments: dict | None = None,
        context: ContextSnapshot | None = None,
    ) -> ToolInvocationResponse:
        call_id = str(uuid.uuid4())
        started = time.monotonic()
        payload = {} if arguments is None else arguments

        try:
            result = await self._dispatch(name, payload, context)
        except NavigatorError as e:
            self._record(call_id, name, payload, started, context, error=e)
            return ToolInvocationResponse.fail(e, call_id=call_id)
        except Exception as e:
            logger.exception("tool_invocation_crashed", tool_name=name)
            error = HandlerError(f"Tool {name} failed: {e}")
            self._record(call_id, name, payload, started, context, error=error)
            return ToolInvocationResponse.fail(error, call_id=call_id)

        self._record(call_id, name, payload, started, context)
        return ToolInvocationResponse.ok(result, call_id=call_id)

    async def invoke_chain(
        self,
        calls: Iterable[tuple[str, dict]],
        context: ContextSnapshot | None = None,
    ) -> list[ToolInvocationResponse]:
        """Invoke calls in order, stopping after the first failure."""
        responses: list[ToolInvocationResponse] = []
        for name, arguments in calls:
            response = await self.invoke(name, arguments, context)
            responses.append(response)
            if not response.success:
                break
        return responses

    def clear_all_tools(self) -> None:
        self._tools.clear()

    def clear_execution_history(self) -> None:
        self._tracker.clear()
        if self._guard is not None:
            self._guard.reset()

    def get_stats(self) -> dict:
        stats = self._tracker.stats()
        return {
            "total_tools": len(self._tools),
            "total_executions": stats["total"],
            "successful_executions": stats["successful"],
            "failed_executions": stats["failed"],
            "tool_names": self.tool_names(),
        }

    async def _dispatch(
        self, name: str, arguments: object, context: ContextSnapshot | None
    ) -> dict:
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("unknown_tool", tool_name=name)
            raise UnknownToolError(name, self._tools)

        if self._guard is not None:
            self._guard.check(
                name, arguments, context.session_id if context else None, self._tracker
            )

        problems = validate_arguments(tool.parameters, arguments)
        if problems:
            first = problems[0]
            logger.warning(
                "tool_arguments_invalid",
                tool_name=name,
                field=first.field,
                problems=[p.message for p in problems[:5]],
            )
            raise InvalidArgumentsError(
                "; ".join(p.message for p in problems), field=first.field
            )

        try:
            outcome = await tool.execute(arguments, context)
        except ToolError as e:
            logger.warning("tool_execution_rejected", tool_name=name, error_code=e.code)
            if type(e) is ToolError:
                raise HandlerError(str(e), code=e.code) from e
            raise
        except Exception as e:
            logger.exception("tool_execution_failed", tool_name=name)
            raise HandlerError(f"Tool {name} failed: {e}") from e

        if outcome is None or isinstance(outcome, dict):
            outcome = ToolOutcome(data=dict(outcome or {}))
        elif not isinstance(outcome, ToolOutcome):
            raise HandlerError(
                f"Tool {name} returned {type(outcome).__name__}, expected dict or ToolOutcome"
            )

        if outcome.actions:
            if self._applier is None:
                raise HandlerError(f"Tool {name} produced page actions but no page is attached")
            await self._applier.apply(outcome.actions)

        logger.info("tool_executed", tool_name=name, actions=len(outcome.actions))
        return {**outcome.data, "actions": [a.to_dict() for a in outcome.actions]}

    def _record(
        self,
        call_id: str,
        name: str,
        arguments: object,
        started: float,
        context: ContextSnapshot | None,
        *,
        error: NavigatorError | None = None,
    ) -> None:
        self._tracker.record(
            ExecutionRecord(
                tool_name=name,
                arguments=arguments if isinstance(arguments, dict) else {"_raw": repr(arguments)},
                outcome=ExecutionOutcome.failure if error else ExecutionOutcome.success,
                call_id=call_id,
                session_id=context.session_id if context else None,
                error_kind=error.kind if error else None,
                reason=str(error) if error else None,
                duration_ms=round((time.monotonic() - started) * 1000, 3),
            )
        )
