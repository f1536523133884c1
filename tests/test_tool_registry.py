"""Tests for ToolRegistry: registration, schema export and invocation boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from src.context.snapshot import ContextSnapshot
from src.infra.errors import DuplicateToolError, HandlerError, ToolError
from src.tools.base import BaseTool, ToolCategory, ToolOutcome
from src.tools.effects import ActionType, BufferedPageHost, UIAction
from src.tools.registry import ToolRegistry
from src.tools.schema import object_schema, string_param
from src.tools.tracker import ExecutionOutcome

if TYPE_CHECKING:
    from src.context.store import ContextStore


class _SpyTool(BaseTool):
    """Tool that counts calls and captures the context it receives."""

    def __init__(self, name: str = "spy_tool") -> None:
        self._name = name
        self.call_count = 0
        self.last_context: ContextSnapshot | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Spy tool"

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "mode": string_param("Mode", enum=["fast", "slow"]),
                "count": {"type": "integer", "description": "How many"},
            },
            required=["mode"],
        )

    async def execute(
        self, arguments: dict, context: ContextSnapshot | None = None
    ) -> dict:
        self.call_count += 1
        self.last_context = context
        return {"echo": arguments}


class _CrashingTool(_SpyTool):
    async def execute(self, arguments: dict, context: ContextSnapshot | None = None) -> dict:
        self.call_count += 1
        raise RuntimeError("kaboom")


class _PlainToolErrorTool(_SpyTool):
    async def execute(self, arguments: dict, context: ContextSnapshot | None = None) -> dict:
        raise ToolError("generic failure")


class _ThemeActionTool(_SpyTool):
    async def execute(self, arguments: dict, context: ContextSnapshot | None = None) -> ToolOutcome:
        return ToolOutcome(
            data={"done": True},
            actions=(UIAction(ActionType.theme, "dark"), UIAction(ActionType.focus, "#search")),
        )


class _BadReturnTool(_SpyTool):
    async def execute(self, arguments: dict, context: ContextSnapshot | None = None):  # type: ignore[override]
        return "not a dict"


class _PairTool(_SpyTool):
    @property
    def parameters(self) -> dict:
        return object_schema(
            {"page": string_param("Page"), "section": string_param("Section")},
            required=["page", "section"],
        )


class _NoSchemaTool(_SpyTool):
    @property
    def parameters(self) -> dict:
        return {"type": "object", "properties": {"x": {"type": "nonsense"}}}


class TestRegistration:
    def test_register_then_get_all(self, registry: ToolRegistry) -> None:
        tool = _SpyTool()
        registry.register(tool)
        assert registry.get_all() == [tool]
        assert registry.get("spy_tool") is tool
        assert registry.has("spy_tool")

    def test_duplicate_fails_and_leaves_registry_unchanged(self, registry: ToolRegistry) -> None:
        first = _SpyTool()
        registry.register(first)

        with pytest.raises(DuplicateToolError, match="spy_tool"):
            registry.register(_SpyTool())

        assert registry.get_all() == [first]

    def test_duplicate_error_code(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        with pytest.raises(DuplicateToolError) as exc_info:
            registry.register(_SpyTool())
        assert exc_info.value.code == "DUPLICATE_TOOL"

    def test_registration_order_preserved(self, registry: ToolRegistry) -> None:
        for name in ["c", "a", "b"]:
            registry.register(_SpyTool(name))
        assert registry.tool_names() == ["c", "a", "b"]

    def test_invalid_schema_rejected(self, registry: ToolRegistry) -> None:
        with pytest.raises(ToolError) as exc_info:
            registry.register(_NoSchemaTool())
        assert exc_info.value.code == "INVALID_TOOL"
        assert registry.get_all() == []

    def test_empty_name_rejected(self, registry: ToolRegistry) -> None:
        with pytest.raises(ToolError, match="non-empty name"):
            registry.register(_SpyTool(""))

    def test_unregister(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        assert registry.unregister("spy_tool") is True
        assert registry.unregister("spy_tool") is False

    def test_clear_all_tools_allows_reregistration(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        registry.clear_all_tools()
        registry.register(_SpyTool())
        assert registry.tool_names() == ["spy_tool"]

    def test_list_tools_by_category(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        assert len(registry.list_tools(ToolCategory.ui_control)) == 1
        assert registry.list_tools(ToolCategory.data) == []

    def test_fresh_registries_do_not_share_state(self) -> None:
        a, b = ToolRegistry(), ToolRegistry()
        a.register(_SpyTool())
        assert b.get_all() == []


class TestSchemaExport:
    def test_one_definition_per_tool(self, registry: ToolRegistry) -> None:
        for name in ["a", "b", "c"]:
            registry.register(_SpyTool(name))
        definitions = registry.get_function_definitions()
        assert [d["name"] for d in definitions] == ["a", "b", "c"]
        assert all(d["parameters"]["type"] == "object" for d in definitions)

    def test_parameters_round_trip(self, registry: ToolRegistry) -> None:
        tool = _SpyTool()
        registry.register(tool)
        (definition,) = registry.get_function_definitions()
        assert definition["description"] == "Spy tool"
        assert definition["parameters"]["properties"] == tool.parameters["properties"]
        assert definition["parameters"]["required"] == ["mode"]

    def test_missing_required_list_is_filled(self, registry: ToolRegistry) -> None:
        class _Bare(_SpyTool):
            @property
            def parameters(self) -> dict:
                return {"type": "object", "properties": {}}

        registry.register(_Bare())
        assert registry.get_function_definitions()[0]["parameters"]["required"] == []

    def test_openai_envelope(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        (entry,) = registry.get_tools_schema()
        assert entry["type"] == "function"
        assert entry["function"]["name"] == "spy_tool"


class TestInvoke:
    @pytest.mark.asyncio
    async def test_success(self, registry: ToolRegistry, snapshot: ContextSnapshot) -> None:
        tool = _SpyTool()
        registry.register(tool)

        response = await registry.invoke("spy_tool", {"mode": "fast"}, snapshot)

        assert response.success is True
        assert response.result["echo"] == {"mode": "fast"}
        assert response.error is None
        assert tool.last_context is snapshot

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry: ToolRegistry) -> None:
        response = await registry.invoke("nope", {})
        assert response.success is False
        assert response.error.kind == "UnknownToolError"

    @pytest.mark.asyncio
    async def test_missing_required_never_reaches_handler(self, registry: ToolRegistry) -> None:
        tool = _SpyTool()
        registry.register(tool)

        response = await registry.invoke("spy_tool", {"count": 2})

        assert response.success is False
        assert response.error.kind == "InvalidArgumentsError"
        assert response.error.field == "mode"
        assert tool.call_count == 0

    @pytest.mark.asyncio
    async def test_each_missing_field_reported_once(self, registry: ToolRegistry) -> None:
        registry.register(_PairTool("pair"))

        response = await registry.invoke("pair", {})

        assert response.error.kind == "InvalidArgumentsError"
        assert response.error.field == "page"
        assert response.error.message == (
            "Required parameter 'page' is missing; Required parameter 'section' is missing"
        )

    @pytest.mark.parametrize(
        ("arguments", "field"),
        [
            ({"mode": "medium"}, "mode"),
            ({"mode": "fast", "count": "two"}, "count"),
            ({"mode": 3}, "mode"),
            ({"mode": "fast", "extra": True}, "extra"),
        ],
    )
    @pytest.mark.asyncio
    async def test_schema_violations(
        self, registry: ToolRegistry, arguments: dict, field: str
    ) -> None:
        tool = _SpyTool()
        registry.register(tool)

        response = await registry.invoke("spy_tool", arguments)

        assert response.error.kind == "InvalidArgumentsError"
        assert response.error.field == field
        assert tool.call_count == 0

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        response = await registry.invoke("spy_tool", ["fast"])  # type: ignore[arg-type]
        assert response.error.kind == "InvalidArgumentsError"
        assert response.error.field is None

    @pytest.mark.asyncio
    async def test_handler_fault_becomes_handler_error(self, registry: ToolRegistry) -> None:
        registry.register(_CrashingTool())
        response = await registry.invoke("spy_tool", {"mode": "fast"})
        assert response.success is False
        assert response.error.kind == "HandlerError"
        assert "kaboom" in response.error.message

    @pytest.mark.asyncio
    async def test_plain_tool_error_reported_as_handler_error(self, registry: ToolRegistry) -> None:
        registry.register(_PlainToolErrorTool())
        response = await registry.invoke("spy_tool", {"mode": "fast"})
        assert response.error.kind == "HandlerError"

    @pytest.mark.asyncio
    async def test_bad_return_type(self, registry: ToolRegistry) -> None:
        registry.register(_BadReturnTool())
        response = await registry.invoke("spy_tool", {"mode": "fast"})
        assert response.error.kind == "HandlerError"

    @pytest.mark.asyncio
    async def test_actions_applied_after_handler(
        self,
        registry: ToolRegistry,
        store: ContextStore,
        host: BufferedPageHost,
    ) -> None:
        registry.register(_ThemeActionTool())

        response = await registry.invoke("spy_tool", {"mode": "fast"}, store.get_context())

        assert response.success is True
        assert store.get_context().theme == "dark"
        assert [a.target for a in host.drain()] == ["#search"]
        assert [a["type"] for a in response.result["actions"]] == ["theme", "focus"]

    @pytest.mark.asyncio
    async def test_actions_without_page_fail(self) -> None:
        registry = ToolRegistry()
        registry.register(_ThemeActionTool())
        response = await registry.invoke("spy_tool", {"mode": "fast"})
        assert response.error.kind == "HandlerError"

    @pytest.mark.asyncio
    async def test_every_invocation_recorded_once(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        registry.register(_CrashingTool("crash"))

        await registry.invoke("spy_tool", {"mode": "fast"})
        await registry.invoke("spy_tool", {})
        await registry.invoke("missing", {})
        await registry.invoke("crash", {"mode": "slow"})

        records = registry.tracker.recent(10)
        assert [r.tool_name for r in records] == ["crash", "missing", "spy_tool", "spy_tool"]
        assert [r.outcome for r in records] == [
            ExecutionOutcome.failure,
            ExecutionOutcome.failure,
            ExecutionOutcome.failure,
            ExecutionOutcome.success,
        ]
        assert records[0].error_kind == "HandlerError"
        assert records[1].error_kind == "UnknownToolError"
        assert records[2].error_kind == "InvalidArgumentsError"

    @pytest.mark.asyncio
    async def test_call_id_matches_record(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        response = await registry.invoke("spy_tool", {"mode": "fast"})
        assert registry.tracker.recent(1)[0].call_id == response.call_id

    @pytest.mark.asyncio
    async def test_clear_execution_history(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        await registry.invoke("spy_tool", {"mode": "fast"})
        registry.clear_execution_history()
        assert registry.tracker.recent(5) == []
        assert registry.has("spy_tool")

    @pytest.mark.asyncio
    async def test_stats(self, registry: ToolRegistry) -> None:
        registry.register(_SpyTool())
        await registry.invoke("spy_tool", {"mode": "fast"})
        await registry.invoke("spy_tool", {})
        stats = registry.get_stats()
        assert stats["total_tools"] == 1
        assert stats["successful_executions"] == 1
        assert stats["failed_executions"] == 1


class TestInvokeChain:
    @pytest.mark.asyncio
    async def test_stops_after_first_failure(self, registry: ToolRegistry) -> None:
        tool = _SpyTool()
        registry.register(tool)

        responses = await registry.invoke_chain(
            [("spy_tool", {"mode": "fast"}), ("missing", {}), ("spy_tool", {"mode": "slow"})]
        )

        assert [r.success for r in responses] == [True, False]
        assert tool.call_count == 1


class TestHandlerErrorShape:
    def test_handler_error_kind(self) -> None:
        assert HandlerError("x").kind == "HandlerError"
        assert HandlerError("x").code == "HANDLER_ERROR"
