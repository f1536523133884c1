from __future__ import annotations

import json
import uuid
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.infra.errors import NavigatorError


class ToolInvocationRequest(BaseModel):
    """Inbound tool call, typically parsed from a model function call."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("name must be a non-empty string")
        return v.strip()

    @field_validator("arguments", mode="before")
    @classmethod
    def _parse_arguments(cls, v: Any) -> Any:
        # Function-call arguments arrive as a JSON string from the model.
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"arguments is not valid JSON: {e.msg}") from e
        return v


class ToolErrorInfo(BaseModel):
    kind: str
    message: str
    field: str | None = None

    @classmethod
    def from_error(cls, error: NavigatorError) -> ToolErrorInfo:
        return cls(kind=error.kind, message=str(error), field=getattr(error, "field", None))


class ToolInvocationResponse(BaseModel):
    """Uniform result of an invocation: success with a result, or an error."""

    success: bool
    result: Any = None
    error: ToolErrorInfo | None = None
    call_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def ok(cls, result: Any, **kwargs: Any) -> ToolInvocationResponse:
        return cls(success=True, result=result, **kwargs)

    @classmethod
    def fail(cls, error: NavigatorError, **kwargs: Any) -> ToolInvocationResponse:
        return cls(success=False, error=ToolErrorInfo.from_error(error), **kwargs)
