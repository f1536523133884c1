from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

from src.infra.errors import HandlerError, InvalidArgumentsError
from src.tools.base import BaseTool, ToolOutcome
from src.tools.effects import ActionType, UIAction
from src.tools.schema import object_schema, string_param

if TYPE_CHECKING:
    from src.context.snapshot import ContextSnapshot

logger = logging.getLogger(__name__)


class ResourceCatalog:
    """Resolves download targets to fetchable URLs.

    A target is a named resource ("resume"), a site-relative file path
    ("/files/deck.pdf") or an absolute http(s) URL.
    """

    def __init__(self, named: dict[str, str] | None = None, base_url: str = "") -> None:
        self._named = {k.lower(): v for k, v in (named or {}).items()}
        self._base_url = base_url

    @property
    def names(self) -> list[str]:
        return sorted(self._named)

    def resolve(self, target: str) -> str | None:
        """Return the URL to fetch, or None if target is not fetchable."""
        target = target.strip()
        named = self._named.get(target.lower())
        if named is not None:
            target = named

        parsed = urlparse(target)
        if parsed.scheme in ("http", "https"):
            return target if parsed.netloc else None
        if parsed.scheme or parsed.netloc or not target.startswith("/"):
            return None

        path = PurePosixPath(parsed.path)
        if ".." in path.parts or not path.suffix:
            return None
        return urljoin(self._base_url, target) if self._base_url else target


class TriggerDownloadTool(BaseTool):
    """Starts a browser download of a site resource (resume PDF and friends)."""

    def __init__(self, resources: ResourceCatalog) -> None:
        self._resources = resources

    @property
    def name(self) -> str:
        return "trigger_download"

    @property
    def description(self) -> str:
        names = ", ".join(self._resources.names) or "none"
        return (
            "Download a file for the visitor. 'target' is a named resource "
            f"({names}), a site path like '/files/deck.pdf', or a full URL."
        )

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "target": string_param(
                    "Resource name, site-relative file path, or http(s) URL.",
                    min_length=1,
                ),
            },
            required=["target"],
        )

    async def execute(
        self, arguments: dict, context: ContextSnapshot | None = None
    ) -> ToolOutcome:
        raw_target = arguments["target"]
        if not raw_target.strip():
            raise InvalidArgumentsError("target must be a non-empty string", field="target")

        url = self._resources.resolve(raw_target)
        if url is None:
            logger.warning("Unresolvable download target: %s", raw_target)
            raise HandlerError(
                f"Cannot resolve download target {raw_target!r} to a file",
                code="UNRESOLVABLE_TARGET",
            )

        file_name = PurePosixPath(urlparse(url).path).name or raw_target.strip()
        return ToolOutcome(
            data={"target": raw_target, "url": url, "file_name": file_name},
            actions=(
                UIAction(
                    ActionType.download,
                    url,
                    {
                        "file_name": file_name,
                        "requested_at": datetime.now(UTC).isoformat(),
                    },
                ),
            ),
        )
