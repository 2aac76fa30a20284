from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...archive import ArchiveIndex
from ...state import SelectionError, ViewerState
from ..deps import get_viewer, require_index
from ..schemas import ChannelViewDto, SelectionDto, ThreadViewDto
from ..serializers import channel_view_to_dto, thread_view_to_dto

router = APIRouter(prefix="/api")


@router.get(
    "/channels/{category}/{channel}",
    response_model=ChannelViewDto,
    response_model_by_alias=True,
)
async def select_channel(
    category: str,
    channel: str,
    index: ArchiveIndex = Depends(require_index),
    viewer: ViewerState = Depends(get_viewer),
):
    try:
        view = viewer.select_channel(category, channel)
    except SelectionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return channel_view_to_dto(view, index)


@router.get(
    "/channels/{category}/{channel}/threads/{thread}",
    response_model=ThreadViewDto,
    response_model_by_alias=True,
)
async def select_thread(
    category: str,
    channel: str,
    thread: str,
    index: ArchiveIndex = Depends(require_index),
    viewer: ViewerState = Depends(get_viewer),
):
    try:
        view = viewer.select_thread(category, channel, thread)
    except SelectionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return thread_view_to_dto(view, index)


def _selection(viewer: ViewerState) -> SelectionDto:
    channel_view = viewer.channel_view
    thread_view = viewer.thread_view
    return SelectionDto(
        state=viewer.selection.value,
        category=channel_view.category if channel_view else None,
        channel=channel_view.channel.name if channel_view else None,
        thread=thread_view.thread.name if thread_view else None,
    )


@router.get("/selection", response_model=SelectionDto)
async def get_selection(viewer: ViewerState = Depends(get_viewer)):
    return _selection(viewer)


@router.delete("/selection/thread", response_model=SelectionDto)
async def close_thread(viewer: ViewerState = Depends(get_viewer)):
    viewer.close_thread()
    return _selection(viewer)
