from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ...assembler import parse_query_async
from ...events import search_events_async
from ...logging_config import get_logger
from ...schemas import ParsedQuery, ParseRequest, SearchRequest, SearchResponse

router = APIRouter(tags=["search"])
logger = get_logger(__name__)


@router.post("/query/parse", response_model=ParsedQuery)
async def parse(req: ParseRequest) -> ParsedQuery:
    return await parse_query_async(
        req.query,
        default_city=req.default_city,
        default_limit=req.default_limit,
        context=req.context,
    )


@router.post("/events/search", response_model=SearchResponse)
async def search(req: SearchRequest) -> SearchResponse:
    parsed = await parse_query_async(
        req.query,
        default_city=req.default_city,
        default_limit=req.default_limit,
        context=req.context,
    )
    result = await search_events_async(
        parsed.spec,
        sort_by=req.sort_by,
        campaign=req.campaign,
        post_id=req.post_id,
    )
    if not result.success:
        logger.warning("events_search_failed", query=req.query, error=result.error)
        raise HTTPException(status_code=502, detail=f"Event catalog unavailable: {result.error}")
    logger.info(
        "events_search",
        location=parsed.spec.location,
        tags=list(parsed.spec.tags),
        total_found=result.total_found,
        returned=len(result.events),
    )
    return SearchResponse(spec=parsed.spec, result=result)
