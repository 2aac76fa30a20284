from __future__ import annotations

"""Binary payloads of the loaded archive.

Images are stored in the archive without a MIME type (except attachments,
which may carry one), so the type is sniffed from the leading bytes.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...archive import ArchiveIndex, Resolved
from ..deps import require_index

router = APIRouter(prefix="/api/assets")

_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
)


def sniff_image_type(data: bytes) -> str:
    for magic, mime in _SIGNATURES:
        if data.startswith(magic):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def _image(data: bytes | None) -> Response:
    if not data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=data, media_type=sniff_image_type(data))


@router.get("/avatars/{user_id}")
async def get_avatar(user_id: str, index: ArchiveIndex = Depends(require_index)):
    res = index.resolve_user(user_id)
    return _image(res.value.avatar if isinstance(res, Resolved) else None)


@router.get("/emojis/{emoji_id}")
async def get_emoji(emoji_id: str, index: ArchiveIndex = Depends(require_index)):
    res = index.resolve_emoji(emoji_id)
    return _image(res.value.image if isinstance(res, Resolved) else None)


@router.get("/server-icon")
async def get_server_icon(index: ArchiveIndex = Depends(require_index)):
    server = index.archive.server
    return _image(server.icon if server else None)


@router.get("/attachments/{category}/{channel}/{message_id}/{position}")
async def get_attachment(
    category: str,
    channel: str,
    message_id: str,
    position: int,
    thread: str | None = None,
    index: ArchiveIndex = Depends(require_index),
):
    found = index.channel(category, channel)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    messages = found.messages
    if thread is not None:
        if thread not in found.threads:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        messages = found.threads[thread].messages
    message = messages.get(message_id)
    attachments = (message.attachments or []) if message else []
    if not 0 <= position < len(attachments):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    attachment = attachments[position]
    media_type = attachment.content_type or sniff_image_type(attachment.data)
    headers = {}
    if attachment.filename:
        headers["Content-Disposition"] = f"inline; filename*=UTF-8''{quote(attachment.filename)}"
    return Response(content=attachment.data, media_type=media_type, headers=headers)
