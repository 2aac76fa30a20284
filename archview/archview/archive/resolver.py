from __future__ import annotations

"""Id lookups over a loaded archive.

Lookups never raise for unknown ids.  They return either :class:`Resolved`
wrapping the record or :class:`Unknown` carrying the id, and the helpers below
pick the display fallback explicitly.
"""

from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar, Union

from .models import Archive, Channel, Emoji, Role, User

T = TypeVar("T")

DEFAULT_ROLE_COLOR = "#999"


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T


@dataclass(frozen=True)
class Unknown:
    id: str


Resolution = Union[Resolved[T], Unknown]


class ArchiveIndex:
    """Read-only index over an :class:`Archive` snapshot."""

    def __init__(self, archive: Archive):
        self.archive = archive

    def _lookup(self, table: dict, key) -> Resolution:
        key = str(key)
        record = table.get(key)
        if record is None:
            return Unknown(key)
        return Resolved(record)

    def resolve_user(self, user_id) -> Resolution[User]:
        return self._lookup(self.archive.users, user_id)

    def resolve_role(self, role_id) -> Resolution[Role]:
        return self._lookup(self.archive.roles, role_id)

    def resolve_emoji(self, emoji_id) -> Resolution[Emoji]:
        return self._lookup(self.archive.emojis, emoji_id)

    def display_name(self, user_id) -> str:
        """Return the nickname for ``user_id`` or the raw id when unknown."""
        res = self.resolve_user(user_id)
        if isinstance(res, Resolved):
            return res.value.name
        return res.id

    def user_color(self, user_id) -> str | None:
        res = self.resolve_user(user_id)
        if isinstance(res, Resolved):
            return res.value.color
        return None

    def role_label(self, role_id) -> tuple[str, str]:
        """Return ``(name, color)`` for a role mention."""
        res = self.resolve_role(role_id)
        if isinstance(res, Resolved):
            return res.value.name, res.value.color or DEFAULT_ROLE_COLOR
        return f"role({res.id})", DEFAULT_ROLE_COLOR

    def channel(self, category: str, name: str) -> Channel | None:
        return self.archive.categories.get(category, {}).get(name)

    def iter_channels(self) -> Iterator[Channel]:
        for channels in self.archive.categories.values():
            yield from channels.values()
