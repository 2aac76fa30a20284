from __future__ import annotations

"""Application state for the viewer.

:class:`ViewerState` owns the currently loaded archive snapshot and the
channel/thread selection.  It is the only mutable object in the engine; the
archive itself is replaced wholesale on every load.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import structlog

from .archive.models import Archive, Channel, Thread
from .archive.resolver import ArchiveIndex
from .grouping import Group, find_group, group_messages, sort_messages
from .search import SearchHit

logger = structlog.get_logger()

PRIVATE_PREFIX = "\U0001F512"
THREAD_PREFIX = "\U0001F4AC"


class SelectionError(LookupError):
    """Raised when a category, channel or thread does not exist."""


class NoArchiveLoaded(RuntimeError):
    """Raised when a selection is attempted before any archive is loaded."""


class Selection(str, Enum):
    EMPTY = "empty"
    CHANNEL = "channel"
    THREAD = "thread"


@dataclass
class ChannelView:
    category: str
    channel: Channel
    title: str
    groups: List[Group]
    thread_names: List[str] = field(default_factory=list)

    @property
    def private(self) -> bool:
        return self.channel.private


@dataclass
class ThreadView:
    category: str
    channel: Channel
    thread: Thread
    title: str
    groups: List[Group]


def channel_title(channel: Channel) -> str:
    prefix = f"{PRIVATE_PREFIX}#" if channel.private else "#"
    return f"{prefix} {channel.name}"


def thread_title(thread: Thread) -> str:
    return f"{THREAD_PREFIX} {thread.name}"


class ViewerState:
    def __init__(self) -> None:
        self.index: ArchiveIndex | None = None
        self.selection = Selection.EMPTY
        self.channel_view: ChannelView | None = None
        self.thread_view: ThreadView | None = None

    @property
    def archive(self) -> Archive | None:
        return self.index.archive if self.index else None

    def _require_index(self) -> ArchiveIndex:
        if self.index is None:
            raise NoArchiveLoaded("No archive loaded")
        return self.index

    def _clear_selection(self) -> None:
        self.selection = Selection.EMPTY
        self.channel_view = None
        self.thread_view = None

    def load(self, archive: Archive) -> ArchiveIndex:
        """Replace the current snapshot and reset the selection."""
        self.index = ArchiveIndex(archive)
        self._clear_selection()
        logger.info(
            "archive.loaded",
            server=archive.server.name if archive.server else None,
            categories=len(archive.categories),
        )
        return self.index

    def reset(self) -> None:
        self.index = None
        self._clear_selection()
        logger.info("archive.reset")

    def _channel(self, category: str, name: str) -> Channel:
        channel = self._require_index().channel(category, name)
        if channel is None:
            raise SelectionError(f"Unknown channel {category}/{name}")
        return channel

    def select_channel(self, category: str, name: str) -> ChannelView:
        """Select a channel, grouping its messages with reply breaks."""
        channel = self._channel(category, name)
        groups = group_messages(sort_messages(channel.messages), break_on_reply=True)
        self.channel_view = ChannelView(
            category=category,
            channel=channel,
            title=channel_title(channel),
            groups=groups,
            thread_names=list(channel.threads),
        )
        self.thread_view = None
        self.selection = Selection.CHANNEL
        logger.debug("selection.channel", category=category, channel=name, groups=len(groups))
        return self.channel_view

    def select_thread(self, category: str, channel_name: str, thread_name: str) -> ThreadView:
        """Select a thread of a channel; the channel becomes selected too."""
        channel = self._channel(category, channel_name)
        thread = channel.threads.get(thread_name)
        if thread is None:
            raise SelectionError(
                f"Unknown thread {thread_name} in {category}/{channel_name}"
            )
        current = self.channel_view
        if current is None or current.category != category or current.channel.name != channel_name:
            self.select_channel(category, channel_name)
        groups = group_messages(sort_messages(thread.messages), break_on_reply=False)
        self.thread_view = ThreadView(
            category=category,
            channel=channel,
            thread=thread,
            title=thread_title(thread),
            groups=groups,
        )
        self.selection = Selection.THREAD
        logger.debug(
            "selection.thread",
            category=category,
            channel=channel_name,
            thread=thread_name,
            groups=len(groups),
        )
        return self.thread_view

    def close_thread(self) -> None:
        self.thread_view = None
        if self.channel_view is not None:
            self.selection = Selection.CHANNEL
        else:
            self.selection = Selection.EMPTY

    def open_hit(self, hit: SearchHit) -> tuple[ChannelView, int | None]:
        """Select the channel of a search hit and locate its group."""
        view = self.select_channel(hit.category, hit.channel)
        return view, find_group(view.groups, hit.message_id)
