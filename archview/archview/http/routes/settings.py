from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends

from ...config import load_config, set_theme
from ..deps import get_config_path
from ..schemas import ThemeDto

router = APIRouter(prefix="/api")


@router.get("/settings/theme", response_model=ThemeDto)
async def get_theme(path: Path | None = Depends(get_config_path)):
    return ThemeDto(theme=load_config(path).theme)


@router.put("/settings/theme", response_model=ThemeDto)
async def put_theme(payload: ThemeDto, path: Path | None = Depends(get_config_path)):
    cfg = set_theme(payload.theme, path)
    return ThemeDto(theme=cfg.theme)
