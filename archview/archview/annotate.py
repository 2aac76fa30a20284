from __future__ import annotations

"""Message body annotation.

Raw message text is split into a list of nodes: plain :class:`Text` runs and
typed marker nodes (mentions, emoji, links).  Each pass rewrites only the
``Text`` runs left by the previous pass, so markup produced by one pass can
never be re-interpreted by a later one.  Escaping happens once, in
:meth:`RichText.to_html`, where text runs are escaped and only the markers
themselves are emitted as tags.
"""

import base64
from dataclasses import dataclass, field
import html
import re
from typing import Callable, Iterable, List, Sequence, Union

import regex

from .archive.models import Emoji
from .archive.resolver import ArchiveIndex, Resolved, DEFAULT_ROLE_COLOR

BROADCAST_RE = re.compile(r"@(?:everyone|here)")
ROLE_MENTION_RE = re.compile(r"<@&(\d+)>")
USER_MENTION_RE = re.compile(r"<@!?(\d+)>")
CUSTOM_EMOJI_RE = re.compile(r"<(a?):(\w+):(\d+)>")
URL_RE = re.compile(r"https?://[^\s<>)]+")
HEX_COLOR_RE = re.compile(r"#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})")

# Any single emoji code point; skin tone modifiers and regional indicators
# carry Emoji_Presentation, pictographs such as U+00A9 or U+25B6 only
# Extended_Pictographic.
UNICODE_EMOJI = r"[\p{Extended_Pictographic}\p{Emoji_Presentation}]"
EMOJI_TOKEN_RE = regex.compile(r"<a?:\w+:\d+>|" + UNICODE_EMOJI)
EMOJI_JOINER_RE = re.compile("[\u200D\uFE0E\uFE0F\u20E3]")
EMOJI_ONLY_LIMIT = 30


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class BroadcastMention:
    label: str


@dataclass(frozen=True)
class RoleMention:
    role_id: str
    name: str
    color: str


@dataclass(frozen=True)
class UserMention:
    user_id: str
    name: str


@dataclass(frozen=True)
class EmojiImage:
    emoji_id: str
    name: str
    url: str
    animated: bool = False


@dataclass(frozen=True)
class Link:
    url: str


@dataclass(frozen=True)
class Highlight:
    text: str


Node = Union[Text, BroadcastMention, RoleMention, UserMention, EmojiImage, Link, Highlight]
EmojiUrlBuilder = Callable[[Emoji], str]


def emoji_data_uri(emoji: Emoji) -> str:
    """Return a self-contained ``data:`` URI for an emoji image."""
    mime = "image/gif" if emoji.animated else "image/png"
    return f"data:{mime};base64,{base64.b64encode(emoji.image).decode('ascii')}"


def _safe_color(color: str | None) -> str:
    if not color or not HEX_COLOR_RE.fullmatch(color):
        color = DEFAULT_ROLE_COLOR
    if len(color) == 4:
        color = "#" + "".join(c * 2 for c in color[1:])
    return color


def _merge(nodes: Iterable[Node]) -> List[Node]:
    merged: List[Node] = []
    for node in nodes:
        if isinstance(node, Text):
            if not node.text:
                continue
            if merged and isinstance(merged[-1], Text):
                merged[-1] = Text(merged[-1].text + node.text)
                continue
        merged.append(node)
    return merged


def substitute(
    nodes: Sequence[Node], pattern: re.Pattern, make: Callable[[re.Match], Node]
) -> List[Node]:
    """Replace ``pattern`` matches inside text runs with ``make(match)``."""

    out: List[Node] = []
    for node in nodes:
        if not isinstance(node, Text):
            out.append(node)
            continue
        pos = 0
        for match in pattern.finditer(node.text):
            out.append(Text(node.text[pos:match.start()]))
            out.append(make(match))
            pos = match.end()
        out.append(Text(node.text[pos:]))
    return _merge(out)


def _render_node(node: Node) -> str:
    esc = html.escape
    if isinstance(node, Text):
        return esc(node.text)
    if isinstance(node, BroadcastMention):
        return f'<span class="mention everyone">{esc(node.label)}</span>'
    if isinstance(node, RoleMention):
        color = _safe_color(node.color)
        return (
            f'<span class="mention role" style="background:{color}22;color:{color}">'
            f"@{esc(node.name)}</span>"
        )
    if isinstance(node, UserMention):
        return f'<span class="mention user">@{esc(node.name)}</span>'
    if isinstance(node, EmojiImage):
        return (
            f'<img class="emoji" src="{esc(node.url)}" alt=":{esc(node.name)}:">'
        )
    if isinstance(node, Link):
        url = esc(node.url)
        return f'<a href="{url}" target="_blank" rel="noopener noreferrer">{url}</a>'
    if isinstance(node, Highlight):
        return f"<mark>{esc(node.text)}</mark>"
    raise TypeError(f"Unknown node {node!r}")


@dataclass
class RichText:
    nodes: List[Node] = field(default_factory=list)
    emoji_only: bool = False

    def to_html(self) -> str:
        return "".join(_render_node(n) for n in self.nodes)


def is_emoji_only(text: str | None) -> bool:
    """Return ``True`` for bodies made of 1 to 30 emoji and whitespace."""
    if not text:
        return False
    found = EMOJI_TOKEN_RE.findall(text)
    if not found or len(found) > EMOJI_ONLY_LIMIT:
        return False
    rest = EMOJI_JOINER_RE.sub("", EMOJI_TOKEN_RE.sub("", text))
    return rest.strip() == ""


def highlight_terms(nodes: Sequence[Node], terms: Iterable[str]) -> List[Node]:
    """Wrap case-insensitive occurrences of ``terms`` in :class:`Highlight`."""
    terms = sorted({t for t in terms if t}, key=len, reverse=True)
    if not terms:
        return list(nodes)
    pattern = re.compile("|".join(re.escape(t) for t in terms), re.IGNORECASE)
    return substitute(nodes, pattern, lambda m: Highlight(m.group(0)))


def annotate(
    raw: str | None,
    index: ArchiveIndex,
    *,
    emoji_url: EmojiUrlBuilder | None = None,
    highlight: Iterable[str] = (),
) -> RichText:
    """Turn a raw message body into :class:`RichText`."""

    if not isinstance(raw, str) or not raw:
        return RichText()
    emoji_url = emoji_url or emoji_data_uri

    def role(match: re.Match) -> Node:
        name, color = index.role_label(match.group(1))
        return RoleMention(role_id=match.group(1), name=name, color=color)

    def user(match: re.Match) -> Node:
        uid = match.group(1)
        return UserMention(user_id=uid, name=index.display_name(uid))

    def emoji(match: re.Match) -> Node:
        res = index.resolve_emoji(match.group(3))
        if not isinstance(res, Resolved):
            return Text(match.group(0))
        return EmojiImage(
            emoji_id=res.value.id,
            name=match.group(2),
            url=emoji_url(res.value),
            animated=res.value.animated,
        )

    nodes: List[Node] = [Text(raw)]
    nodes = substitute(nodes, BROADCAST_RE, lambda m: BroadcastMention(m.group(0)))
    nodes = substitute(nodes, ROLE_MENTION_RE, role)
    nodes = substitute(nodes, USER_MENTION_RE, user)
    nodes = substitute(nodes, CUSTOM_EMOJI_RE, emoji)
    nodes = substitute(nodes, URL_RE, lambda m: Link(m.group(0)))
    nodes = highlight_terms(nodes, highlight)
    return RichText(nodes=nodes, emoji_only=is_emoji_only(raw))


def annotate_html(raw: str | None, index: ArchiveIndex, **kwargs) -> str:
    return annotate(raw, index, **kwargs).to_html()
