"""Integration point between the hosting page and the navigator runtime.

The provider owns one ContextStore, one ToolRegistry and the page host for
a single page load (or a single server render). It maps host events
(navigation, theme resolution, user agent) into store updates and routes
model tool calls into the registry with the current snapshot.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog
from pydantic import ValidationError

from src.config.settings import Settings, get_settings
from src.context.snapshot import ContextSnapshot, Theme
from src.context.store import ContextListener, ContextStore
from src.context.utils import (
    EnvironmentSignals,
    create_browser_context,
    create_server_context,
    extract_page_from_path,
    resolve_theme_signal,
    validate_context,
)
from src.infra.errors import InvalidArgumentsError
from src.infra.logging import bind_session, unbind_session
from src.tools.builtins import (
    default_resources,
    initialize_navigation_tools,
    initialize_ui_control_tools,
)
from src.tools.effects import BufferedPageHost, EffectApplier, PageHost
from src.tools.guards import ExecutionGuard
from src.tools.protocol import ToolInvocationRequest, ToolInvocationResponse
from src.tools.registry import ToolRegistry
from src.tools.tracker import ExecutionTracker

logger = structlog.get_logger()

_current_provider: ContextVar[ContextProvider | None] = ContextVar(
    "navigator_provider", default=None
)


class ContextProvider:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        initial: ContextSnapshot | None = None,
        host: PageHost | None = None,
        registry: ToolRegistry | None = None,
        install_builtins: bool = True,
    ) -> None:
        self._settings = settings or get_settings()
        self._default_theme = Theme(self._settings.context.default_theme)
        self.store = ContextStore(
            initial
            or create_server_context(
                self._settings.context.default_page, default_theme=self._default_theme
            )
        )
        self.host = host if host is not None else BufferedPageHost()
        self.registry = registry or ToolRegistry(
            tracker=ExecutionTracker(self._settings.tools.history_capacity),
            applier=EffectApplier(self.store, self.host),
            guard=ExecutionGuard.from_settings(self._settings.tools),
        )
        if install_builtins:
            initialize_ui_control_tools(
                self.registry, resources=default_resources(self._settings.tools)
            )
            initialize_navigation_tools(self.registry, pages=self._settings.context.known_pages)

        self._context = self.store.get_context()
        self._unsubscribe = self.store.subscribe(self._on_store_change)
        self._ready = True
        self._log_validation(self._context)

    @classmethod
    def for_browser(
        cls,
        settings: Settings | None = None,
        signals: EnvironmentSignals | None = None,
        initial: dict | None = None,
        **kwargs: Any,
    ) -> ContextProvider:
        settings = settings or get_settings()
        snapshot = create_browser_context(
            initial, signals, default_theme=Theme(settings.context.default_theme)
        )
        return cls(settings, initial=snapshot, **kwargs)

    @classmethod
    def for_server(
        cls,
        settings: Settings | None = None,
        default_page: str | None = None,
        initial: dict | None = None,
        **kwargs: Any,
    ) -> ContextProvider:
        settings = settings or get_settings()
        snapshot = create_server_context(
            default_page or settings.context.default_page,
            initial,
            default_theme=Theme(settings.context.default_theme),
        )
        return cls(settings, initial=snapshot, **kwargs)

    # -- consumer surface ---------------------------------------------------

    @property
    def context(self) -> ContextSnapshot:
        return self._context

    @property
    def is_ready(self) -> bool:
        return self._ready

    def update_context(self, **changes: object) -> None:
        self.store.update_context(**changes)

    def set_current_page(self, page: str, section: str | None = None) -> None:
        self.store.set_current_page(page, section)

    def set_theme(self, theme: Theme | str) -> None:
        self.store.set_theme(theme)

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # -- host events --------------------------------------------------------

    def on_navigation(self, path: str) -> None:
        location = extract_page_from_path(path)
        self.store.set_current_page(location.page, location.section)

    def on_theme_signal(self, theme: str | None, system_theme: str | None = None) -> None:
        """Apply a theme-resolution signal; "system" is resolved here, never in the store."""
        resolved = resolve_theme_signal(theme, system_theme)
        if resolved is None:
            logger.debug("theme_signal_unresolved", theme=theme, system_theme=system_theme)
            return
        self.store.set_theme(resolved)

    def on_user_agent(self, user_agent: str | None) -> None:
        self.store.set_user_agent(user_agent)

    # -- tool invocation ----------------------------------------------------

    async def handle_invocation(
        self, request: ToolInvocationRequest | dict
    ) -> ToolInvocationResponse:
        """Run a model tool call against the current snapshot."""
        if not isinstance(request, ToolInvocationRequest):
            try:
                request = ToolInvocationRequest.model_validate(request)
            except ValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(p) for p in first["loc"]) or None
                logger.warning("tool_request_malformed", field=field)
                return ToolInvocationResponse.fail(
                    InvalidArgumentsError(f"Malformed tool call: {first['msg']}", field=field)
                )

        return await self.registry.invoke(request.name, request.arguments, self.store.get_context())

    def get_function_definitions(self) -> list[dict]:
        return self.registry.get_function_definitions()

    def close(self) -> None:
        self._unsubscribe()
        self._ready = False

    def _on_store_change(self, snapshot: ContextSnapshot) -> None:
        if snapshot.session_id != self._context.session_id:
            bind_session(snapshot.session_id)
        self._context = snapshot

    def _log_validation(self, snapshot: ContextSnapshot) -> None:
        validation = validate_context(snapshot, self._settings.context.known_pages)
        if not validation.valid:
            logger.warning("context_invalid", errors=validation.errors)
        elif validation.warnings:
            logger.debug("context_warnings", warnings=validation.warnings)


def get_provider() -> ContextProvider | None:
    """The provider active in the current context, or None when unconfigured."""
    return _current_provider.get()


@contextmanager
def use_provider(provider: ContextProvider) -> Iterator[ContextProvider]:
    """Make provider the active one for the enclosed block (and tasks it spawns)."""
    token = _current_provider.set(provider)
    bind_session(provider.context.session_id)
    try:
        yield provider
    finally:
        unbind_session()
        _current_provider.reset(token)
