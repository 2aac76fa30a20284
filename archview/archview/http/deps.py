from __future__ import annotations

from pathlib import Path

import logging
from fastapi import Depends, HTTPException, Request, status

from ..archive.resolver import ArchiveIndex
from ..state import ViewerState


def get_viewer(request: Request) -> ViewerState:
    return request.app.state.viewer


def get_config_path(request: Request) -> Path | None:
    return request.app.state.config_path


def require_index(viewer: ViewerState = Depends(get_viewer)) -> ArchiveIndex:
    if viewer.index is None:
        logging.debug("Request rejected, no archive loaded")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="No archive loaded"
        )
    return viewer.index

