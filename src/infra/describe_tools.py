"""Print the function definitions the navigator exposes to the model.

Run directly: python -m src.infra.describe_tools
"""

from __future__ import annotations

import json

import structlog

from src.config.settings import Settings, get_settings
from src.context.provider import ContextProvider
from src.infra.logging import setup_logging

logger = structlog.get_logger()


def describe_tools(settings: Settings | None = None, *, openai_format: bool = False) -> str:
    """Return the built-in tool definitions as indented JSON."""
    provider = ContextProvider.for_server(settings)
    try:
        if openai_format:
            definitions = provider.registry.get_tools_schema()
        else:
            definitions = provider.get_function_definitions()
        logger.info("tool_definitions_exported", count=len(definitions))
        return json.dumps(definitions, indent=2)
    finally:
        provider.close()


if __name__ == "__main__":
    settings = get_settings()
    setup_logging(json_output=settings.logging.json_output, log_level=settings.logging.level)
    print(describe_tools(settings))
