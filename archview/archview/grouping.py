from __future__ import annotations

"""Clustering of a message stream into display groups.

A group is a run of consecutive messages by one author.  A new group starts
when the author changes, when more than :data:`GROUP_GAP_SECONDS` passed since
the previous message of the group, or, in channel views, when a message is a
reply (so its quoted preview always sits on a group header).
"""

from typing import Iterable, List, Mapping, Sequence, Tuple

from .archive.models import Message

GROUP_GAP_SECONDS = 7 * 60

Item = Tuple[str, Message]
Group = List[Item]


def sort_messages(messages: Mapping[str, Message]) -> List[Item]:
    """Return ``(id, message)`` pairs in ascending timestamp order.

    The sort is stable so messages sharing a timestamp keep mapping order.
    """
    return sorted(messages.items(), key=lambda item: item[1].ts)


def starts_group(current: Sequence[Item] | None, message: Message, break_on_reply: bool) -> bool:
    if not current:
        return True
    header = current[0][1]
    previous = current[-1][1]
    if header.author_id != message.author_id:
        return True
    if message.ts - previous.ts > GROUP_GAP_SECONDS:
        return True
    return bool(break_on_reply and message.reply_to)


def group_messages(items: Iterable[Item], break_on_reply: bool = True) -> List[Group]:
    """Partition ordered ``(id, message)`` pairs into display groups.

    Flattening the result yields ``items`` unchanged.
    """

    groups: List[Group] = []
    current: Group | None = None
    for mid, message in items:
        if starts_group(current, message, break_on_reply):
            current = []
            groups.append(current)
        current.append((mid, message))
    return groups


def find_group(groups: Sequence[Group], message_id: str) -> int | None:
    """Return the index of the group holding ``message_id``."""
    for idx, group in enumerate(groups):
        if any(mid == message_id for mid, _ in group):
            return idx
    return None
