"""GET /sse/progress/{sessionId} endpoint"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from frugsy_api.models.schemas import ProgressEvent
from frugsy_api.core.state_machine import SearchPhase, SearchState
from frugsy_api.api.search import session_store
from datetime import datetime, timezone
import asyncio
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

POLL_INTERVAL_SECONDS = 0.25
MAX_STREAM_SECONDS = 600


def _event_for(state: SearchState) -> ProgressEvent:
    if state.phase == SearchPhase.FAILED:
        detail = state.error_message or "Search failed"
    elif state.phase == SearchPhase.EMPTY:
        detail = state.empty_message or "Nothing found"
    elif state.phase == SearchPhase.DONE:
        detail = f"Found {sum(len(g.items) for g in state.groups)} item(s) at {len(state.groups)} store(s)"
    else:
        detail = state.progress_label
    return ProgressEvent(
        ts=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        session_id=state.session_id,
        phase=state.phase.value,
        detail=detail,
        terminal=state.is_terminal(),
    )


@router.get("/progress/{session_id}")
async def stream_progress(session_id: str):
    """
    Stream search progress as Server-Sent Events.

    One event per observable change (phase or label). Only the latest label
    is ever sent; the stream closes after a DONE, FAILED or EMPTY event.

    Event format:
    {
      "ts": "2025-10-27T10:00:00Z",
      "session_id": "abc123",
      "phase": "FETCHING_PRICES",
      "detail": "Found 4 store(s) via Google Maps. Fetching item prices...",
      "terminal": false
    }
    """
    orchestrator = session_store.get(session_id)
    if not orchestrator:
        logger.warning(f"SSE ENDPOINT: Session NOT FOUND: {session_id}")
        raise HTTPException(status_code=404, detail="Session not found")

    async def generate():
        last_version = None
        waited = 0.0
        while waited < MAX_STREAM_SECONDS:
            current = session_store.get(session_id)
            if not current:
                logger.warning(f"SSE: Session {session_id} removed during streaming")
                break
            state = current.state
            if state.version != last_version:
                last_version = state.version
                event = _event_for(state)
                yield f"data: {event.model_dump_json()}\n\n"
                if event.terminal:
                    logger.info(f"SSE: Stream closing for session {session_id} - terminal state: {state.phase.value}")
                    return
            await asyncio.sleep(POLL_INTERVAL_SECONDS)
            waited += POLL_INTERVAL_SECONDS

        logger.warning(f"SSE: Timeout for session {session_id}")

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )
