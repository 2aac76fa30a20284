from __future__ import annotations

from fastapi import APIRouter, Depends

from ...annotate import annotate
from ...archive import ArchiveIndex
from ..deps import require_index
from ..schemas import AnnotateBody, AnnotateDto
from ..serializers import emoji_asset_url

router = APIRouter(prefix="/api")


@router.post("/annotate", response_model=AnnotateDto, response_model_by_alias=True)
async def annotate_text(
    body: AnnotateBody, index: ArchiveIndex = Depends(require_index)
):
    rich = annotate(
        body.text, index, emoji_url=emoji_asset_url, highlight=body.highlight or ()
    )
    return AnnotateDto(html=rich.to_html(), emoji_only=rich.emoji_only)
