from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ...archive import ArchiveIndex, DecodeError, load_archive
from ...state import ViewerState
from ..deps import get_viewer, require_index
from ..schemas import ArchiveDto
from ..serializers import archive_to_dto

router = APIRouter(prefix="/api")


@router.post("/archive", response_model=ArchiveDto, response_model_by_alias=True)
async def upload_archive(
    archive: UploadFile = File(...),
    server: UploadFile | None = File(None),
    viewer: ViewerState = Depends(get_viewer),
):
    """Replace the loaded snapshot with the uploaded archive files.

    ``archive`` is the messages bundle; ``server`` optionally carries the
    users, roles, emoji and server icon tables.  A file that fails to decode
    leaves the previous snapshot untouched.
    """

    data = await archive.read()
    server_data = await server.read() if server is not None else None
    try:
        loaded = load_archive(data, server_data or None)
    except DecodeError as exc:
        logging.warning("Rejected archive upload %s: %s", archive.filename, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    viewer.load(loaded)
    return archive_to_dto(loaded)


@router.get("/archive", response_model=ArchiveDto, response_model_by_alias=True)
async def get_archive(index: ArchiveIndex = Depends(require_index)):
    return archive_to_dto(index.archive)


@router.delete("/archive", status_code=status.HTTP_204_NO_CONTENT)
async def reset_archive(viewer: ViewerState = Depends(get_viewer)) -> None:
    viewer.reset()
