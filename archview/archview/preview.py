from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping
import unicodedata

from .archive.models import Message
from .archive.resolver import ArchiveIndex, Resolved

REPLY_PREVIEW_LIMIT = 100
SEARCH_PREVIEW_LIMIT = 200
ATTACHMENT_LABEL = "Attachment"

_JOINERS = {"\u200D", "\uFE0E", "\uFE0F", "\u20E3"}


def _extends_cluster(char: str) -> bool:
    return (
        char in _JOINERS
        or unicodedata.combining(char) != 0
        or unicodedata.category(char) in ("Mn", "Me")
        or "\U0001F3FB" <= char <= "\U0001F3FF"
    )


def truncate_text(text: str, limit: int) -> tuple[str, bool]:
    """Cut ``text`` to at most ``limit`` characters on a cluster boundary.

    Returns the shortened text and whether anything was removed.  The cut is
    moved back while the first dropped character would still belong to the
    previous character (combining marks, joiners, skin tone modifiers).
    """

    if len(text) <= limit:
        return text, False
    cut = limit
    while cut > 0 and (_extends_cluster(text[cut]) or text[cut - 1] == "\u200D"):
        cut -= 1
    return text[:cut], True


@dataclass(frozen=True)
class ReplyPreview:
    message_id: str
    author_id: str
    author_name: str
    author_color: str | None
    has_avatar: bool
    text: str


def reply_preview(
    message: Message, collection: Mapping[str, Message], index: ArchiveIndex
) -> ReplyPreview | None:
    """Build the quoted preview for a reply, or ``None`` when it dangles."""

    if not message.reply_to:
        return None
    target = collection.get(message.reply_to)
    if target is None:
        return None
    if target.text:
        snippet, cut = truncate_text(target.text, REPLY_PREVIEW_LIMIT)
        text = snippet.replace("\n", " ") + ("..." if cut else "")
    elif target.attachments:
        text = ATTACHMENT_LABEL
    else:
        text = ""
    author = index.resolve_user(target.author_id)
    return ReplyPreview(
        message_id=target.id,
        author_id=target.author_id,
        author_name=index.display_name(target.author_id),
        author_color=index.user_color(target.author_id),
        has_avatar=isinstance(author, Resolved) and author.value.avatar is not None,
        text=text,
    )


def local_time(ts: float) -> datetime:
    return datetime.fromtimestamp(ts)


def full_time_label(ts: float) -> str:
    return local_time(ts).strftime("%Y/%m/%d %H:%M:%S")


def short_time_label(ts: float) -> str:
    return local_time(ts).strftime("%H:%M")


def date_label(ts: float) -> str:
    return local_time(ts).strftime("%Y/%m/%d")
