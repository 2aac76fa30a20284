from __future__ import annotations

"""Discord-style search over a loaded archive.

Query language
--------------
Whitespace separated tokens.  ``from:``, ``in:``, ``before:``, ``after:`` and
``during:`` are qualifiers; their value may be double quoted to keep spaces
(``from:"Jane Doe"``).  Every other token, including unknown ``key:value``
pairs (kept as written, quotes included) and bare ``"quoted phrases"``, is a
free-text term.  Qualifier keys are case sensitive: ``FROM:x`` is free text.

Repeated values of one qualifier are ORed, different qualifiers are ANDed and
every free-text term must appear in the message body.  Dates are calendar
days in local time; ``during:`` compares the local day of the message.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
import html
import logging
import re
from typing import Dict, List, Optional

from .archive.models import Message
from .archive.resolver import ArchiveIndex

QUALIFIERS = ("from", "in", "before", "after", "during")
DATE_QUALIFIERS = ("before", "after", "during")
SUGGESTION_LIMIT = 50
CALENDAR_CELLS = 42

TOKEN_RE = re.compile(
    r'(?P<key>\w+):"(?P<quoted>[^"]*)"|"(?P<phrase>[^"]*)"|(?P<bare>[^"\s]+)'
)
QUALIFIER_TOKEN_RE = re.compile(r"\b(?:from|in|before|after|during):\S*")
PARTIAL_FROM_RE = re.compile(r'(?:^|\s)from:"?([^"\s]*)$', re.IGNORECASE)
PARTIAL_IN_RE = re.compile(r'(?:^|\s)in:"?([^"\s]*)$', re.IGNORECASE)
PARTIAL_DATE_RE = re.compile(r"(?:^|\s)(before|after|during):$", re.IGNORECASE)
DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


def parse_date(value: str) -> datetime | None:
    """Parse a qualifier date; naive results are local time."""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    if value.endswith(("Z", "z")):
        # fromisoformat only accepts "Z" from Python 3.11 on
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class DateValue:
    raw: str
    moment: datetime | None

    @property
    def ts(self) -> float | None:
        return self.moment.timestamp() if self.moment else None

    @property
    def day(self) -> date | None:
        if self.moment is None:
            return None
        if self.moment.tzinfo is not None:
            return self.moment.astimezone().date()
        return self.moment.date()


@dataclass
class SearchQuery:
    terms: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    channels: List[str] = field(default_factory=list)
    before: List[DateValue] = field(default_factory=list)
    after: List[DateValue] = field(default_factory=list)
    during: List[DateValue] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.terms
            or self.authors
            or self.channels
            or self.before
            or self.after
            or self.during
        )


def _add_qualifier(query: SearchQuery, key: str, value: str, token: str) -> None:
    if key == "from":
        query.authors.append(value.lower())
    elif key == "in":
        query.channels.append(value.lower())
    elif key in DATE_QUALIFIERS:
        moment = parse_date(value)
        if moment is None:
            logging.debug("Unparseable %s date %r", key, value)
        getattr(query, key).append(DateValue(raw=value, moment=moment))
    else:
        query.terms.append(token.lower())


def parse_query(text: str) -> SearchQuery:
    """Parse raw search input into a :class:`SearchQuery`."""

    query = SearchQuery()
    for match in TOKEN_RE.finditer(text or ""):
        if match.group("key") is not None:
            key, value = match.group("key"), match.group("quoted")
            _add_qualifier(query, key, value, match.group(0))
        elif match.group("phrase") is not None:
            if match.group("phrase").strip():
                query.terms.append(match.group("phrase").lower())
        else:
            token = match.group("bare")
            key, sep, value = token.partition(":")
            if sep and key in QUALIFIERS:
                _add_qualifier(query, key, value, token)
            else:
                query.terms.append(token.lower())
    return query


@dataclass(frozen=True)
class SearchHit:
    category: str
    channel: str
    message_id: str
    message: Message
    matched_qualifiers: Dict[str, List[str]]


def _match_message(
    query: SearchQuery, message: Message, index: ArchiveIndex
) -> Optional[Dict[str, List[str]]]:
    matched: Dict[str, List[str]] = {}

    if query.authors:
        name = index.display_name(message.author_id).lower()
        found = [v for v in query.authors if v in name]
        if not found:
            return None
        matched["from"] = found

    if query.before:
        found = [d.raw for d in query.before if d.ts is not None and message.ts <= d.ts]
        if not found:
            return None
        matched["before"] = found

    if query.after:
        found = [d.raw for d in query.after if d.ts is not None and message.ts >= d.ts]
        if not found:
            return None
        matched["after"] = found

    if query.during:
        day = datetime.fromtimestamp(message.ts).date()
        found = [d.raw for d in query.during if d.day == day]
        if not found:
            return None
        matched["during"] = found

    if query.terms:
        body = (message.text or "").lower()
        if not body or not all(t in body for t in query.terms):
            return None
        matched["text"] = list(query.terms)

    return matched


def search_archive(query: SearchQuery, index: ArchiveIndex) -> List[SearchHit]:
    """Return every channel message matching ``query``, newest first."""

    hits: List[SearchHit] = []
    for channel in index.iter_channels():
        channel_found: List[str] = []
        if query.channels:
            lowered = channel.name.lower()
            channel_found = [v for v in query.channels if v in lowered]
            if not channel_found:
                continue
        for mid, message in channel.messages.items():
            matched = _match_message(query, message, index)
            if matched is None:
                continue
            if channel_found:
                matched = {"in": channel_found, **matched}
            hits.append(
                SearchHit(
                    category=channel.category,
                    channel=channel.name,
                    message_id=mid,
                    message=message,
                    matched_qualifiers=matched,
                )
            )
    hits.sort(key=lambda h: h.message.ts, reverse=True)
    logging.debug("Search matched %d messages", len(hits))
    return hits


def search(text: str, index: ArchiveIndex) -> List[SearchHit]:
    return search_archive(parse_query(text), index)


# ---- Autocomplete ----


@dataclass(frozen=True)
class UserCandidate:
    id: str
    name: str
    has_avatar: bool


@dataclass(frozen=True)
class ChannelCandidate:
    category: str
    name: str
    private: bool


@dataclass
class Suggestions:
    kind: Optional[str] = None
    qualifier: Optional[str] = None
    partial: str = ""
    users: List[UserCandidate] = field(default_factory=list)
    channels: List[ChannelCandidate] = field(default_factory=list)


def filter_users(partial: str, index: ArchiveIndex, limit: int = SUGGESTION_LIMIT) -> List[UserCandidate]:
    q = partial.lower()
    found: List[UserCandidate] = []
    for user in index.archive.users.values():
        if q in user.name.lower():
            found.append(
                UserCandidate(id=user.id, name=user.name, has_avatar=user.avatar is not None)
            )
            if len(found) >= limit:
                break
    return found


def filter_channels(
    partial: str, index: ArchiveIndex, limit: int = SUGGESTION_LIMIT
) -> List[ChannelCandidate]:
    q = partial.lower()
    found: List[ChannelCandidate] = []
    for channel in index.iter_channels():
        if q in channel.name.lower():
            found.append(
                ChannelCandidate(
                    category=channel.category, name=channel.name, private=channel.private
                )
            )
            if len(found) >= limit:
                break
    return found


def suggest(text_before_caret: str, index: ArchiveIndex) -> Suggestions:
    """Offer completions for the qualifier the caret currently sits in."""

    match = PARTIAL_FROM_RE.search(text_before_caret)
    if match:
        partial = match.group(1)
        return Suggestions(
            kind="users",
            qualifier="from",
            partial=partial,
            users=filter_users(partial, index),
        )
    match = PARTIAL_IN_RE.search(text_before_caret)
    if match:
        partial = match.group(1)
        return Suggestions(
            kind="channels",
            qualifier="in",
            partial=partial,
            channels=filter_channels(partial, index),
        )
    match = PARTIAL_DATE_RE.search(text_before_caret)
    if match:
        return Suggestions(kind="date", qualifier=match.group(1).lower())
    return Suggestions()


def apply_suggestion(text: str, qualifier: str, value: str) -> str:
    """Replace the trailing partial ``qualifier:`` token with ``value``."""

    if qualifier in DATE_QUALIFIERS:
        token = f"{qualifier}:{value} "
    else:
        token = f'{qualifier}:"{value}" '
    pattern = re.compile(rf'{re.escape(qualifier)}:"?[^"\s]*"?$', re.IGNORECASE)
    if pattern.search(text):
        return pattern.sub(lambda _: token, text, count=1)
    if text and not text.endswith(" "):
        text += " "
    return text + token


def highlight_query(text: str) -> str:
    """Escape ``text`` and wrap qualifier tokens in ``<mark>``."""

    parts: List[str] = []
    pos = 0
    for match in QUALIFIER_TOKEN_RE.finditer(text):
        parts.append(html.escape(text[pos:match.start()]))
        parts.append(f"<mark>{html.escape(match.group(0))}</mark>")
        pos = match.end()
    parts.append(html.escape(text[pos:]))
    return "".join(parts)


@dataclass(frozen=True)
class CalendarDay:
    date: date
    in_month: bool
    today: bool


@dataclass
class CalendarMonth:
    year: int
    month: int
    days: List[Optional[CalendarDay]]


def calendar_month(year: int, month: int, today: date | None = None) -> CalendarMonth:
    """Return a Sunday-first, 42-cell grid for the date picker.

    Cells falling before ``date.min`` or after ``date.max`` are ``None``.
    """

    today = today or date.today()
    lead = (calendar.weekday(year, month, 1) - calendar.SUNDAY) % 7
    start = date(year, month, 1).toordinal() - lead
    last = date.max.toordinal()
    days: List[Optional[CalendarDay]] = []
    for ordinal in range(start, start + CALENDAR_CELLS):
        if ordinal < 1 or ordinal > last:
            days.append(None)
            continue
        d = date.fromordinal(ordinal)
        days.append(CalendarDay(date=d, in_month=d.month == month, today=d == today))
    return CalendarMonth(year=year, month=month, days=days)
