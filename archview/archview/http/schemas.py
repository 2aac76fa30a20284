from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---- Archive ----


class ServerDto(CamelModel):
    name: str
    icon_url: Optional[str] = Field(default=None, alias="iconUrl")


class ChannelEntryDto(CamelModel):
    name: str
    private: bool = False
    threads: List[str] = Field(default_factory=list)


class CategoryDto(CamelModel):
    name: str
    channels: List[ChannelEntryDto]


class ArchiveDto(CamelModel):
    server: ServerDto | None = None
    categories: List[CategoryDto]
    user_count: int = Field(alias="userCount")
    message_count: int = Field(alias="messageCount")


# ---- Messages ----


class AttachmentDto(CamelModel):
    url: str
    filename: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    is_image: bool = Field(default=False, alias="isImage")


class PollAnswerDto(CamelModel):
    text: str
    votes: int
    percentage: float


class PollDto(CamelModel):
    question: str
    total_votes: int = Field(alias="totalVotes")
    answers: List[PollAnswerDto]


class ReplyPreviewDto(CamelModel):
    message_id: str = Field(alias="messageId")
    author_id: str = Field(alias="authorId")
    author_name: str = Field(alias="authorName")
    author_color: Optional[str] = Field(default=None, alias="authorColor")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    text: str


class ChatMessage(CamelModel):
    id: str
    author_id: str = Field(alias="authorId")
    author_name: str = Field(alias="authorName")
    author_color: Optional[str] = Field(default=None, alias="authorColor")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    timestamp: datetime
    time_label: str = Field(alias="timeLabel")
    is_header: bool = Field(alias="isHeader")
    kind: str
    html: str = ""
    emoji_only: bool = Field(default=False, alias="emojiOnly")
    attachments: List[AttachmentDto] | None = None
    poll: PollDto | None = None
    reply: ReplyPreviewDto | None = None
    thread_link: Optional[str] = Field(default=None, alias="threadLink")


class MessageGroupDto(CamelModel):
    author_id: str = Field(alias="authorId")
    messages: List[ChatMessage]


class ChannelViewDto(CamelModel):
    category: str
    channel: str
    title: str
    private: bool
    groups: List[MessageGroupDto]
    thread_names: List[str] = Field(default_factory=list, alias="threadNames")


class ThreadViewDto(CamelModel):
    category: str
    channel: str
    thread: str
    title: str
    groups: List[MessageGroupDto]


class SelectionDto(CamelModel):
    state: Literal["empty", "channel", "thread"]
    category: Optional[str] = None
    channel: Optional[str] = None
    thread: Optional[str] = None


# ---- Search ----


class SearchHitDto(CamelModel):
    category: str
    channel: str
    message_id: str = Field(alias="messageId")
    author_id: str = Field(alias="authorId")
    author_name: str = Field(alias="authorName")
    author_color: Optional[str] = Field(default=None, alias="authorColor")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    timestamp: datetime
    date_label: str = Field(alias="dateLabel")
    preview_html: str = Field(default="", alias="previewHtml")
    has_attachments: bool = Field(default=False, alias="hasAttachments")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    matched_qualifiers: Dict[str, List[str]] = Field(
        default_factory=dict, alias="matchedQualifiers"
    )


class SearchResultsDto(CamelModel):
    query: str
    count: int
    results: List[SearchHitDto]


class OpenHitDto(CamelModel):
    view: ChannelViewDto
    message_id: str = Field(alias="messageId")
    group_index: Optional[int] = Field(default=None, alias="groupIndex")


class UserCandidateDto(CamelModel):
    id: str
    name: str
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")


class ChannelCandidateDto(CamelModel):
    category: str
    name: str
    private: bool = False


class SuggestionsDto(CamelModel):
    kind: Optional[Literal["users", "channels", "date"]] = None
    qualifier: Optional[str] = None
    partial: str = ""
    users: List[UserCandidateDto] = Field(default_factory=list)
    channels: List[ChannelCandidateDto] = Field(default_factory=list)
    highlight_html: str = Field(default="", alias="highlightHtml")


class ApplySuggestionBody(CamelModel):
    text: str = ""
    caret: Optional[int] = Field(default=None, ge=0)
    qualifier: Literal["from", "in", "before", "after", "during"]
    value: str


class QueryTextDto(CamelModel):
    text: str
    highlight_html: str = Field(alias="highlightHtml")


class CalendarDayDto(CamelModel):
    value: date = Field(alias="date")
    day: int
    in_month: bool = Field(alias="inMonth")
    today: bool = False


class CalendarDto(CamelModel):
    year: int
    month: int
    days: List[Optional[CalendarDayDto]]


# ---- Annotation / settings ----


class AnnotateBody(CamelModel):
    text: str
    highlight: List[str] | None = None


class AnnotateDto(CamelModel):
    html: str
    emoji_only: bool = Field(alias="emojiOnly")


class ThemeDto(CamelModel):
    theme: Optional[Literal["light", "dark"]] = None
