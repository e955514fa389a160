"""Search API endpoints"""
from fastapi import APIRouter, BackgroundTasks, Depends
from frugsy_api.models.domain import SearchResult
from frugsy_api.models.errors import ApplicationError, ErrorCode
from frugsy_api.models.schemas import SearchRequest, SearchResponse
from frugsy_api.core.config import settings
from frugsy_api.core.orchestrator import SearchOrchestrator, build_orchestrator
from frugsy_api.core.state_machine import SearchState
import uuid
import asyncio
import logging
from typing import Dict, Optional
from datetime import datetime, timedelta, timezone

router = APIRouter()
logger = logging.getLogger(__name__)

# In-memory session store (in production, use Redis or similar)
session_store: Dict[str, SearchOrchestrator] = {}

SESSION_TTL = timedelta(hours=1)

_base_orchestrator: Optional[SearchOrchestrator] = None


def get_base_orchestrator() -> SearchOrchestrator:
    """Shared collaborators, built once from settings"""
    global _base_orchestrator
    if _base_orchestrator is None:
        _base_orchestrator = build_orchestrator(settings)
    return _base_orchestrator


async def close_base_orchestrator():
    global _base_orchestrator
    if _base_orchestrator is not None:
        await _base_orchestrator.aclose()
        _base_orchestrator = None


def _get_session(session_id: str) -> SearchOrchestrator:
    orchestrator = session_store.get(session_id)
    if orchestrator is None:
        raise ApplicationError(
            code=ErrorCode.NOT_FOUND,
            message=f"Session not found: {session_id}",
            session_id=session_id,
        )
    return orchestrator


async def _run_search(orchestrator: SearchOrchestrator, request: SearchRequest, radius_miles: float) -> None:
    """Background search; failures end up in the session state, never here"""
    try:
        await orchestrator.search(
            item_query=request.item_query,
            postal_code=request.postal_code,
            radius_miles=radius_miles,
            explicit_point=request.explicit_point,
            device_point=request.device_point,
        )
    except Exception as e:
        logger.error(f"[SEARCH] Background search crashed for {orchestrator.state.session_id}: {e}", exc_info=True)


async def cleanup_old_sessions() -> None:
    """Periodically drop sessions idle for longer than the TTL, finished or not"""
    while True:
        try:
            await asyncio.sleep(300)
            removed = purge_expired_sessions()
            if removed:
                logger.info(f"Cleaned up {removed} old sessions")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in cleanup_old_sessions: {e}", exc_info=True)


def purge_expired_sessions(now: Optional[datetime] = None) -> int:
    cutoff = (now or datetime.now(timezone.utc)) - SESSION_TTL
    expired = [
        session_id for session_id, orchestrator in session_store.items()
        if orchestrator.state.last_updated
        and orchestrator.state.last_updated < cutoff
    ]
    for session_id in expired:
        del session_store[session_id]
    return len(expired)


# POST /api/search: starts a search and returns its session id; progress via SSE.
# Passing an existing session_id reruns the search there and supersedes any run in flight.
@router.post("/search", response_model=SearchResponse, status_code=202)
async def start_search(
    request: SearchRequest,
    background_tasks: BackgroundTasks,
    base: SearchOrchestrator = Depends(get_base_orchestrator),
) -> SearchResponse:
    logger.info(f"POST /api/search received for item_query: {request.item_query!r}")

    if request.session_id:
        orchestrator = _get_session(request.session_id)
    else:
        session_id = str(uuid.uuid4())
        orchestrator = base.for_state(SearchState(session_id))
        session_store[session_id] = orchestrator

    radius = request.radius_miles if request.radius_miles is not None else settings.default_radius_miles
    background_tasks.add_task(_run_search, orchestrator, request, radius)
    logger.info(f"Background search scheduled for session {orchestrator.state.session_id}")

    return SearchResponse(session_id=orchestrator.state.session_id)


@router.get("/search/{session_id}", response_model=SearchResult)
async def get_search(session_id: str) -> SearchResult:
    """Current snapshot: phase, progress label, groups, citations, messages"""
    return _get_session(session_id).state.snapshot()
