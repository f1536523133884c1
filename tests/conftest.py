"""Shared pytest fixtures for navigator runtime tests.

Every test gets freshly constructed stores and registries; nothing is
shared between tests, so no reset calls are needed for isolation.
"""

from __future__ import annotations

import pytest

from src.config.settings import ContextSettings, LoggingSettings, Settings, ToolSettings
from src.context.snapshot import ContextSnapshot, Theme
from src.context.store import ContextStore
from src.tools.effects import BufferedPageHost, EffectApplier
from src.tools.registry import ToolRegistry
from src.tools.tracker import ExecutionTracker


@pytest.fixture
def snapshot() -> ContextSnapshot:
    return ContextSnapshot(
        current_page="home",
        session_id="session-test-0001",
        theme=Theme.light,
        user_agent="pytest-agent/1.0",
    )


@pytest.fixture
def store(snapshot: ContextSnapshot) -> ContextStore:
    return ContextStore(snapshot)


@pytest.fixture
def host() -> BufferedPageHost:
    return BufferedPageHost()


@pytest.fixture
def tracker() -> ExecutionTracker:
    return ExecutionTracker(capacity=50)


@pytest.fixture
def registry(store: ContextStore, host: BufferedPageHost, tracker: ExecutionTracker) -> ToolRegistry:
    """A registry wired to the test store and a buffered page host."""
    return ToolRegistry(tracker=tracker, applier=EffectApplier(store, host))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        context=ContextSettings(),
        tools=ToolSettings(history_capacity=20, resume_path="/files/resume.pdf"),
        logging=LoggingSettings(json_output=False),
    )
