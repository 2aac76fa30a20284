from __future__ import annotations

"""Decoding of msgpack archive bundles into :class:`Archive` snapshots.

An exported archive is a msgpack mapping.  The lookup tables live under the
reserved keys ``Users``, ``Roles``, ``Emojis`` and ``__server_icon__``; every
other key is a category mapping channel names to channel records::

    {
        "Users": {"<id>": [nickname, reserved, avatar_bytes, color]},
        "Roles": {"<id>": [name, color]},
        "Emojis": {"<id>": [name, image_bytes, animated]},
        "__server_icon__": [server_name, reserved, icon_bytes],
        "<category>": {
            "<channel>": {
                "private": bool,
                "messages": {"<message id>": {...}},
                "threads": {"<thread name>": {"<message id>": {...}}},
            },
        },
    }

Older exports ship the lookup tables and the categories as two separate files
(a *server* file and a *messages* file); :func:`load_archive` accepts both.
"""

import logging
from typing import Any, Mapping

import msgpack
from pydantic import ValidationError

from .models import Archive, Channel, Emoji, Message, Role, ServerInfo, Thread, User

USERS_KEY = "Users"
ROLES_KEY = "Roles"
EMOJIS_KEY = "Emojis"
SERVER_ICON_KEY = "__server_icon__"
RESERVED_KEYS = frozenset({USERS_KEY, ROLES_KEY, EMOJIS_KEY, SERVER_ICON_KEY})


class DecodeError(Exception):
    """Raised when archive bytes cannot be turned into an :class:`Archive`."""


def _field(record: Any, index: int) -> Any:
    if isinstance(record, (list, tuple)) and len(record) > index:
        return record[index]
    return None


def _color(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return f"#{value:06x}"
    return str(value)


def decode_bundle(data: bytes) -> dict:
    """Unpack raw msgpack bytes, requiring a mapping at the top level."""

    try:
        bundle = msgpack.unpackb(data, raw=False, strict_map_key=False)
    except (msgpack.UnpackException, ValueError, TypeError) as exc:
        raise DecodeError(f"Unreadable archive: {exc}") from exc
    if not isinstance(bundle, dict):
        raise DecodeError(
            f"Archive must be a mapping, got {type(bundle).__name__}"
        )
    return bundle


def _parse_users(raw: Any) -> dict[str, User]:
    users: dict[str, User] = {}
    for uid, record in (raw or {}).items():
        uid = str(uid)
        name = _field(record, 0)
        users[uid] = User(
            id=uid,
            name=str(name) if name not in (None, "") else uid,
            avatar=_field(record, 2) or None,
            color=_color(_field(record, 3)),
        )
    return users


def _parse_roles(raw: Any) -> dict[str, Role]:
    roles: dict[str, Role] = {}
    for rid, record in (raw or {}).items():
        rid = str(rid)
        name = _field(record, 0)
        roles[rid] = Role(
            id=rid,
            name=str(name) if name is not None else f"role({rid})",
            color=_color(_field(record, 1)),
        )
    return roles


def _parse_emojis(raw: Any) -> dict[str, Emoji]:
    emojis: dict[str, Emoji] = {}
    for eid, record in (raw or {}).items():
        eid = str(eid)
        emojis[eid] = Emoji(
            id=eid,
            name=str(_field(record, 0) or ""),
            image=_field(record, 1) or b"",
            animated=bool(_field(record, 2)),
        )
    return emojis


def _parse_server(raw: Any) -> ServerInfo | None:
    name = _field(raw, 0)
    if name is None:
        return None
    return ServerInfo(name=str(name), icon=_field(raw, 2) or None)


def _parse_messages(raw: Any, where: str) -> dict[str, Message]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise DecodeError(f"{where}: messages must be a mapping")
    messages: dict[str, Message] = {}
    for mid, record in raw.items():
        if not isinstance(record, Mapping):
            raise DecodeError(f"{where}: message {mid} is not a mapping")
        payload = dict(record)
        payload["id"] = mid
        messages[str(mid)] = Message.model_validate(payload)
    return messages


def _parse_channel(category: str, name: str, raw: Any) -> Channel:
    where = f"{category}/{name}"
    if not isinstance(raw, Mapping):
        raise DecodeError(f"{where}: channel record is not a mapping")
    threads: dict[str, Thread] = {}
    raw_threads = raw.get("threads") or {}
    if not isinstance(raw_threads, Mapping):
        raise DecodeError(f"{where}: threads must be a mapping")
    for thread_name, thread_messages in raw_threads.items():
        thread_name = str(thread_name)
        threads[thread_name] = Thread(
            name=thread_name,
            messages=_parse_messages(thread_messages, f"{where}/{thread_name}"),
        )
    return Channel(
        name=name,
        category=category,
        private=raw.get("private") is True,
        messages=_parse_messages(raw.get("messages"), where),
        threads=threads,
    )


def build_archive(bundle: Mapping[str, Any]) -> Archive:
    """Validate a decoded bundle mapping into an :class:`Archive`."""

    categories: dict[str, dict[str, Channel]] = {}
    try:
        for category, channels in bundle.items():
            if category in RESERVED_KEYS:
                continue
            category = str(category)
            if not isinstance(channels, Mapping):
                logging.warning("Skipping non-category entry %r in archive", category)
                continue
            categories[category] = {
                str(name): _parse_channel(category, str(name), raw)
                for name, raw in channels.items()
            }
        return Archive(
            users=_parse_users(bundle.get(USERS_KEY)),
            roles=_parse_roles(bundle.get(ROLES_KEY)),
            emojis=_parse_emojis(bundle.get(EMOJIS_KEY)),
            server=_parse_server(bundle.get(SERVER_ICON_KEY)),
            categories=categories,
        )
    except ValidationError as exc:
        raise DecodeError(f"Malformed archive record: {exc}") from exc
    except AttributeError as exc:
        raise DecodeError(f"Malformed lookup table: {exc}") from exc


def load_archive(data: bytes, server: bytes | None = None) -> Archive:
    """Decode ``data`` (and optionally a separate server file) into an archive.

    When ``server`` is given its lookup tables replace any found in ``data``.
    Raises :class:`DecodeError` when either payload is unreadable or malformed.
    """

    bundle = decode_bundle(data)
    if server is not None:
        server_bundle = decode_bundle(server)
        for key in RESERVED_KEYS:
            if key in server_bundle:
                bundle[key] = server_bundle[key]
    archive = build_archive(bundle)
    logging.info(
        "Loaded archive: %d categories, %d users, %d messages",
        len(archive.categories),
        len(archive.users),
        archive.message_count,
    )
    return archive
