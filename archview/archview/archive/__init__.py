from .loader import DecodeError, load_archive
from .models import (
    Archive,
    Attachment,
    Channel,
    Emoji,
    Message,
    MessageKind,
    Poll,
    PollAnswer,
    Role,
    ServerInfo,
    Thread,
    User,
)
from .resolver import ArchiveIndex, Resolved, Unknown

__all__ = [
    "Archive",
    "ArchiveIndex",
    "Attachment",
    "Channel",
    "DecodeError",
    "Emoji",
    "Message",
    "MessageKind",
    "Poll",
    "PollAnswer",
    "Resolved",
    "Role",
    "ServerInfo",
    "Thread",
    "Unknown",
    "User",
    "load_archive",
]
