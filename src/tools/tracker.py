from __future__ import annotations

import copy
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from src.constants import DEFAULT_HISTORY_CAPACITY


class ExecutionOutcome(StrEnum):
    success = "success"
    failure = "failure"


@dataclass(frozen=True)
class ExecutionRecord:
    """One invocation attempt as seen by the registry."""

    tool_name: str
    arguments: dict
    outcome: ExecutionOutcome
    call_id: str = ""
    session_id: str | None = None
    error_kind: str | None = None
    reason: str | None = None
    duration_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def succeeded(self) -> bool:
        return self.outcome is ExecutionOutcome.success


class ExecutionTracker:
    """Bounded, newest-first log of tool invocations.

    When full, recording evicts the oldest entry. Readers get copies of the
    sequence; the records themselves are frozen.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._records: deque[ExecutionRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._records)

    def record(self, entry: ExecutionRecord) -> None:
        self._records.appendleft(replace(entry, arguments=copy.deepcopy(entry.arguments)))

    def recent(self, n: int) -> list[ExecutionRecord]:
        if n <= 0:
            return []
        return list(self._records)[:n]

    def for_tool(self, tool_name: str, limit: int = 10) -> list[ExecutionRecord]:
        return [r for r in self._records if r.tool_name == tool_name][:limit]

    def recent_failures(
        self, tool_name: str, within: timedelta | None = None
    ) -> list[ExecutionRecord]:
        """Failures of tool_name, newest first, optionally limited to a time window."""
        cutoff = datetime.now(UTC) - within if within is not None else None
        return [
            r for r in self._records
            if r.tool_name == tool_name
            and not r.succeeded
            and (cutoff is None or r.timestamp >= cutoff)
        ]

    def is_rapid_repeat(
        self,
        tool_name: str,
        arguments: dict,
        window: timedelta,
        session_id: str | None = None,
    ) -> bool:
        """True if the same call (name and arguments) succeeded within window.

        Failed attempts do not count, so a corrected retry is never blocked.
        With session_id, only calls made in that session are considered.
        """
        cutoff = datetime.now(UTC) - window
        for r in self._records:
            if r.timestamp < cutoff:
                break
            if session_id is not None and r.session_id != session_id:
                continue
            if r.succeeded and r.tool_name == tool_name and r.arguments == arguments:
                return True
        return False

    def stats(self) -> dict:
        successful = sum(1 for r in self._records if r.succeeded)
        return {
            "total": len(self._records),
            "successful": successful,
            "failed": len(self._records) - successful,
            "capacity": self._capacity,
        }

    def clear(self) -> None:
        self._records.clear()
