from __future__ import annotations

"""Helpers translating archive objects and engine results into API DTOs.

Binary payloads (avatars, emoji, attachments, the server icon) are never
inlined; DTOs carry URLs pointing at the asset routes instead.
"""

from datetime import datetime
from typing import Mapping, Sequence
from urllib.parse import quote, urlencode

from ..annotate import annotate
from ..archive.models import Archive, Channel, Emoji, Message, MessageKind, Poll
from ..archive.resolver import ArchiveIndex, Resolved
from ..grouping import Group
from ..preview import (
    SEARCH_PREVIEW_LIMIT,
    date_label,
    full_time_label,
    reply_preview,
    short_time_label,
    truncate_text,
)
from ..search import CalendarMonth, SearchHit, Suggestions, highlight_query
from ..state import ChannelView, ThreadView
from .schemas import (
    ArchiveDto,
    AttachmentDto,
    CalendarDayDto,
    CalendarDto,
    CategoryDto,
    ChannelCandidateDto,
    ChannelEntryDto,
    ChannelViewDto,
    ChatMessage,
    MessageGroupDto,
    PollAnswerDto,
    PollDto,
    ReplyPreviewDto,
    SearchHitDto,
    ServerDto,
    SuggestionsDto,
    ThreadViewDto,
    UserCandidateDto,
)

ASSET_PREFIX = "/api/assets"


def emoji_asset_url(emoji: Emoji) -> str:
    return f"{ASSET_PREFIX}/emojis/{quote(emoji.id, safe='')}"


def avatar_url(index: ArchiveIndex, user_id: str) -> str | None:
    res = index.resolve_user(user_id)
    if isinstance(res, Resolved) and res.value.avatar:
        return f"{ASSET_PREFIX}/avatars/{quote(user_id, safe='')}"
    return None


def attachment_url(
    category: str, channel: str, message_id: str, position: int, thread: str | None = None
) -> str:
    url = (
        f"{ASSET_PREFIX}/attachments/{quote(category, safe='')}/"
        f"{quote(channel, safe='')}/{quote(message_id, safe='')}/{position}"
    )
    if thread is not None:
        url += "?" + urlencode({"thread": thread})
    return url


def archive_to_dto(archive: Archive) -> ArchiveDto:
    server = None
    if archive.server is not None:
        server = ServerDto(
            name=archive.server.name,
            icon_url=f"{ASSET_PREFIX}/server-icon" if archive.server.icon else None,
        )
    categories = [
        CategoryDto(
            name=category,
            channels=[
                ChannelEntryDto(name=ch.name, private=ch.private, threads=list(ch.threads))
                for ch in channels.values()
            ],
        )
        for category, channels in archive.categories.items()
    ]
    return ArchiveDto(
        server=server,
        categories=categories,
        user_count=len(archive.users),
        message_count=archive.message_count,
    )


def poll_to_dto(poll: Poll) -> PollDto:
    total = poll.total_votes
    return PollDto(
        question=poll.question,
        total_votes=total,
        answers=[
            PollAnswerDto(
                text=a.text,
                votes=a.votes,
                percentage=(a.votes / total * 100) if total > 0 else 0.0,
            )
            for a in poll.answers
        ],
    )


def message_to_dto(
    message_id: str,
    message: Message,
    *,
    index: ArchiveIndex,
    collection: Mapping[str, Message],
    is_header: bool,
    category: str,
    channel: Channel,
    thread: str | None = None,
) -> ChatMessage:
    """Serialize one message of a group.

    Only header messages carry the reply preview and, in channel views, the
    link to the thread they spawned.
    """

    body = annotate(message.text, index, emoji_url=emoji_asset_url)
    attachments = [
        AttachmentDto(
            url=attachment_url(category, channel.name, message_id, pos, thread),
            filename=a.filename,
            content_type=a.content_type,
            is_image=a.is_image,
        )
        for pos, a in enumerate(message.attachments or [])
    ] or None

    reply = None
    thread_link = None
    if is_header:
        preview = reply_preview(message, collection, index)
        if preview is not None:
            reply = ReplyPreviewDto(
                message_id=preview.message_id,
                author_id=preview.author_id,
                author_name=preview.author_name,
                author_color=preview.author_color,
                avatar_url=avatar_url(index, preview.author_id),
                text=preview.text,
            )
        if thread is None and message.thread_title and message.thread_title in channel.threads:
            thread_link = message.thread_title

    return ChatMessage(
        id=message_id,
        author_id=message.author_id,
        author_name=index.display_name(message.author_id),
        author_color=index.user_color(message.author_id),
        avatar_url=avatar_url(index, message.author_id) if is_header else None,
        timestamp=datetime.fromtimestamp(message.ts),
        time_label=full_time_label(message.ts) if is_header else short_time_label(message.ts),
        is_header=is_header,
        kind=message.kind.value,
        html=body.to_html(),
        # Poll bodies render at normal size.
        emoji_only=body.emoji_only and message.kind == MessageKind.TEXT,
        attachments=attachments,
        poll=poll_to_dto(message.poll)
        if message.kind == MessageKind.POLL and message.poll
        else None,
        reply=reply,
        thread_link=thread_link,
    )


def groups_to_dtos(
    groups: Sequence[Group],
    *,
    index: ArchiveIndex,
    collection: Mapping[str, Message],
    category: str,
    channel: Channel,
    thread: str | None = None,
) -> list[MessageGroupDto]:
    out: list[MessageGroupDto] = []
    for group in groups:
        messages = [
            message_to_dto(
                mid,
                msg,
                index=index,
                collection=collection,
                is_header=pos == 0,
                category=category,
                channel=channel,
                thread=thread,
            )
            for pos, (mid, msg) in enumerate(group)
        ]
        out.append(MessageGroupDto(author_id=group[0][1].author_id, messages=messages))
    return out


def channel_view_to_dto(view: ChannelView, index: ArchiveIndex) -> ChannelViewDto:
    return ChannelViewDto(
        category=view.category,
        channel=view.channel.name,
        title=view.title,
        private=view.private,
        groups=groups_to_dtos(
            view.groups,
            index=index,
            collection=view.channel.messages,
            category=view.category,
            channel=view.channel,
        ),
        thread_names=view.thread_names,
    )


def thread_view_to_dto(view: ThreadView, index: ArchiveIndex) -> ThreadViewDto:
    return ThreadViewDto(
        category=view.category,
        channel=view.channel.name,
        thread=view.thread.name,
        title=view.title,
        groups=groups_to_dtos(
            view.groups,
            index=index,
            collection=view.thread.messages,
            category=view.category,
            channel=view.channel,
            thread=view.thread.name,
        ),
    )


def hit_to_dto(hit: SearchHit, index: ArchiveIndex, terms: Sequence[str] = ()) -> SearchHitDto:
    message = hit.message
    preview_html = ""
    if message.text:
        snippet, cut = truncate_text(message.text, SEARCH_PREVIEW_LIMIT)
        preview_html = annotate(
            snippet, index, emoji_url=emoji_asset_url, highlight=terms
        ).to_html() + ("..." if cut else "")
    image_url = None
    for pos, attachment in enumerate(message.attachments or []):
        if attachment.is_image:
            image_url = attachment_url(hit.category, hit.channel, hit.message_id, pos)
            break
    return SearchHitDto(
        category=hit.category,
        channel=hit.channel,
        message_id=hit.message_id,
        author_id=message.author_id,
        author_name=index.display_name(message.author_id),
        author_color=index.user_color(message.author_id),
        avatar_url=avatar_url(index, message.author_id),
        timestamp=datetime.fromtimestamp(message.ts),
        date_label=date_label(message.ts),
        preview_html=preview_html,
        has_attachments=bool(message.attachments),
        image_url=image_url,
        matched_qualifiers=hit.matched_qualifiers,
    )


def suggestions_to_dto(suggestions: Suggestions, index: ArchiveIndex, text: str) -> SuggestionsDto:
    return SuggestionsDto(
        kind=suggestions.kind,
        qualifier=suggestions.qualifier,
        partial=suggestions.partial,
        users=[
            UserCandidateDto(
                id=u.id,
                name=u.name,
                avatar_url=avatar_url(index, u.id) if u.has_avatar else None,
            )
            for u in suggestions.users
        ],
        channels=[
            ChannelCandidateDto(category=c.category, name=c.name, private=c.private)
            for c in suggestions.channels
        ],
        highlight_html=highlight_query(text),
    )


def calendar_to_dto(month: CalendarMonth) -> CalendarDto:
    return CalendarDto(
        year=month.year,
        month=month.month,
        days=[
            CalendarDayDto(value=d.date, day=d.date.day, in_month=d.in_month, today=d.today)
            if d is not None
            else None
            for d in month.days
        ],
    )
