"""Pre-dispatch limits on tool invocations.

Every limit is off when its setting is zero, so a bare ExecutionGuard()
admits everything.
"""

from __future__ import annotations

import json
import time
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from src.infra.errors import ExecutionRejectedError

if TYPE_CHECKING:
    from src.config.settings import ToolSettings
    from src.tools.tracker import ExecutionTracker

logger = structlog.get_logger()

_ANONYMOUS = "-"


class ExecutionGuard:
    """Rate limit per session, rapid-repeat rejection and argument size cap.

    Rate limiting uses a sliding window of admitted calls per session id;
    calls without a context share one bucket. Repeats are looked up in the
    registry's ExecutionTracker, so only successful identical calls block.
    """

    def __init__(
        self,
        *,
        max_calls: int = 0,
        window_seconds: float = 60.0,
        repeat_window_seconds: float = 0.0,
        max_argument_bytes: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls < 0 or max_argument_bytes < 0 or repeat_window_seconds < 0:
            raise ValueError("guard limits must be >= 0")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
        self._max_calls = max_calls
        self._window = window_seconds
        self._repeat_window = timedelta(seconds=repeat_window_seconds)
        self._max_argument_bytes = max_argument_bytes
        self._clock = clock
        self._calls: defaultdict[str, deque[float]] = defaultdict(deque)

    @classmethod
    def from_settings(cls, settings: ToolSettings) -> ExecutionGuard:
        return cls(
            max_calls=settings.rate_limit_calls,
            window_seconds=settings.rate_limit_window_seconds,
            repeat_window_seconds=settings.repeat_window_seconds,
            max_argument_bytes=settings.max_argument_bytes,
        )

    def check(
        self,
        tool_name: str,
        arguments: dict,
        session_id: str | None,
        tracker: ExecutionTracker,
    ) -> None:
        """Admit the call or raise ExecutionRejectedError.

        Admitted calls count against the session's rate limit; rejected
        ones do not.
        """
        if self._max_argument_bytes:
            size = len(json.dumps(arguments, default=str).encode("utf-8"))
            if size > self._max_argument_bytes:
                logger.warning("tool_arguments_too_large", tool_name=tool_name, size=size)
                raise ExecutionRejectedError(
                    f"Arguments too large: {size} bytes (max: {self._max_argument_bytes})",
                    code="ARGUMENTS_TOO_LARGE",
                )

        if self._repeat_window and tracker.is_rapid_repeat(
            tool_name, arguments, self._repeat_window, session_id
        ):
            logger.warning("tool_call_repeated", tool_name=tool_name, session_id=session_id)
            raise ExecutionRejectedError(
                f"Identical call to {tool_name} already ran in the last "
                f"{self._repeat_window.total_seconds():g}s",
                code="DUPLICATE_CALL",
            )

        if self._max_calls:
            now = self._clock()
            calls = self._calls[session_id or _ANONYMOUS]
            while calls and calls[0] <= now - self._window:
                calls.popleft()
            if len(calls) >= self._max_calls:
                retry_in = max(0.0, calls[0] + self._window - now)
                logger.warning("tool_rate_limited", tool_name=tool_name, session_id=session_id)
                raise ExecutionRejectedError(
                    f"Rate limit exceeded. Try again in {retry_in:.0f} seconds.",
                    code="RATE_LIMITED",
                )
            calls.append(now)

    def reset(self) -> None:
        self._calls.clear()
