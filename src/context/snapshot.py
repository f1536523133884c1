from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from enum import StrEnum

_MOBILE_UA = re.compile(r"Mobi|Android|iPhone|iPad|iPod", re.IGNORECASE)


class Theme(StrEnum):
    light = "light"
    dark = "dark"

    @classmethod
    def parse(cls, value: object) -> Theme | None:
        """Return the matching theme, or None for anything but exactly "light" or "dark"."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None

    def flipped(self) -> Theme:
        return Theme.dark if self is Theme.light else Theme.light


@dataclass(frozen=True)
class ContextSnapshot:
    """Where the user currently is, as seen by the assistant.

    Snapshots are replaced wholesale by ContextStore; holders of an old
    snapshot never observe a partially-updated value.
    user_agent stays None until the host reports one (never on the server).
    """

    current_page: str
    session_id: str
    theme: Theme = Theme.light
    current_section: str | None = None
    user_agent: str | None = None

    @property
    def is_mobile(self) -> bool:
        return bool(self.user_agent and _MOBILE_UA.search(self.user_agent))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["theme"] = self.theme.value
        data["is_mobile"] = self.is_mobile
        return data
