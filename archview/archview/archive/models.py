from __future__ import annotations

"""Typed, read-only view over a decoded archive bundle."""

from enum import Enum
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArchiveModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


def _as_id(value):
    """Normalise ids that msgpack may hand back as integers."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("id must be a string or integer")
    if isinstance(value, (int, str)):
        return str(value)
    raise ValueError(f"invalid id {value!r}")


class MessageKind(str, Enum):
    TEXT = "text"
    POLL = "poll"


class User(ArchiveModel):
    id: str
    name: str
    color: Optional[str] = None
    avatar: Optional[bytes] = None


class Role(ArchiveModel):
    id: str
    name: str
    color: Optional[str] = None


class Emoji(ArchiveModel):
    id: str
    name: str
    image: bytes = b""
    animated: bool = False


class ServerInfo(ArchiveModel):
    name: str
    icon: Optional[bytes] = None


class Attachment(ArchiveModel):
    content_type: Optional[str] = None
    filename: str = ""
    data: bytes = b""

    @property
    def is_image(self) -> bool:
        return bool(self.content_type) and self.content_type.startswith("image")


class PollAnswer(ArchiveModel):
    text: str = ""
    votes: int = 0


class Poll(ArchiveModel):
    question: str = ""
    answers: List[PollAnswer] = Field(default_factory=list)

    @property
    def total_votes(self) -> int:
        return sum(a.votes for a in self.answers)


class Message(ArchiveModel):
    id: str
    author_id: str
    ts: float
    kind: MessageKind = Field(default=MessageKind.TEXT, alias="type")
    text: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
    poll: Optional[Poll] = None
    reply_to: Optional[str] = None
    thread_title: Optional[str] = None

    @field_validator("id", "author_id", "reply_to", mode="before")
    @classmethod
    def _normalise_ids(cls, value):
        return _as_id(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _tolerate_unknown_kind(cls, value):
        if value is None:
            return MessageKind.TEXT
        try:
            return MessageKind(value)
        except ValueError:
            logging.warning("Unknown message type %r treated as text", value)
            return MessageKind.TEXT

    @field_validator("reply_to", mode="after")
    @classmethod
    def _empty_reply(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class Thread(ArchiveModel):
    name: str
    messages: Dict[str, Message] = Field(default_factory=dict)


class Channel(ArchiveModel):
    name: str
    category: str
    private: bool = False
    messages: Dict[str, Message] = Field(default_factory=dict)
    threads: Dict[str, Thread] = Field(default_factory=dict)


class Archive(ArchiveModel):
    """The whole decoded export.

    ``categories`` maps category name to an ordered mapping of channel name to
    :class:`Channel`; iteration order is the order of the bundle.
    """

    users: Dict[str, User] = Field(default_factory=dict)
    roles: Dict[str, Role] = Field(default_factory=dict)
    emojis: Dict[str, Emoji] = Field(default_factory=dict)
    server: Optional[ServerInfo] = None
    categories: Dict[str, Dict[str, Channel]] = Field(default_factory=dict)

    @property
    def message_count(self) -> int:
        total = 0
        for channels in self.categories.values():
            for channel in channels.values():
                total += len(channel.messages)
                total += sum(len(t.messages) for t in channel.threads.values())
        return total
