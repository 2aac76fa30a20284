from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...archive import ArchiveIndex
from ...search import (
    SearchHit,
    apply_suggestion,
    calendar_month,
    highlight_query,
    parse_query,
    search_archive,
    suggest,
)
from ...state import SelectionError, ViewerState
from ..deps import get_viewer, require_index
from ..schemas import (
    ApplySuggestionBody,
    CalendarDto,
    OpenHitDto,
    QueryTextDto,
    SearchResultsDto,
    SuggestionsDto,
)
from ..serializers import (
    calendar_to_dto,
    channel_view_to_dto,
    hit_to_dto,
    suggestions_to_dto,
)

router = APIRouter(prefix="/api")


@router.get("/search", response_model=SearchResultsDto, response_model_by_alias=True)
async def run_search(
    q: str = "",
    index: ArchiveIndex = Depends(require_index),
):
    """Run a query such as ``from:alice in:general before:2024-01-01 hello``.

    Results are newest first.  An empty query returns no results.
    """

    query = parse_query(q)
    hits = [] if query.is_empty else search_archive(query, index)
    return SearchResultsDto(
        query=q,
        count=len(hits),
        results=[hit_to_dto(hit, index, query.terms) for hit in hits],
    )


@router.get("/search/open", response_model=OpenHitDto, response_model_by_alias=True)
async def open_hit(
    category: str,
    channel: str,
    message_id: str = Query(..., alias="messageId"),
    index: ArchiveIndex = Depends(require_index),
    viewer: ViewerState = Depends(get_viewer),
):
    found = index.channel(category, channel)
    message = found.messages.get(message_id) if found is not None else None
    if message is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown message {message_id} in {category}/{channel}",
        )
    hit = SearchHit(
        category=category,
        channel=channel,
        message_id=message_id,
        message=message,
        matched_qualifiers={},
    )
    try:
        view, group_index = viewer.open_hit(hit)
    except SelectionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return OpenHitDto(
        view=channel_view_to_dto(view, index),
        message_id=message_id,
        group_index=group_index,
    )


@router.get(
    "/search/suggestions", response_model=SuggestionsDto, response_model_by_alias=True
)
async def get_suggestions(
    text: str = "",
    caret: int | None = Query(None, ge=0),
    index: ArchiveIndex = Depends(require_index),
):
    before_caret = text if caret is None else text[:caret]
    return suggestions_to_dto(suggest(before_caret, index), index, text)


@router.post(
    "/search/suggestions/apply", response_model=QueryTextDto, response_model_by_alias=True
)
async def apply_selected_suggestion(body: ApplySuggestionBody):
    """Write a picked user, channel or date into the query at the caret."""
    caret = len(body.text) if body.caret is None else body.caret
    # The inserted token already ends with a space.
    rest = body.text[caret:].lstrip()
    text = apply_suggestion(body.text[:caret], body.qualifier, body.value) + rest
    return QueryTextDto(text=text, highlight_html=highlight_query(text))


@router.get("/search/calendar", response_model=CalendarDto, response_model_by_alias=True)
async def get_calendar(
    year: int | None = Query(None, ge=1, le=9999),
    month: int | None = Query(None, ge=1, le=12),
):
    today = date.today()
    return calendar_to_dto(
        calendar_month(year or today.year, month or today.month, today=today)
    )
