"""Search state machine"""

from enum import Enum
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
import logging
from frugsy_api.models.domain import Citation, LocationGroup, SearchResult
from frugsy_api.models.errors import ApplicationError

logger = logging.getLogger(__name__)


class SearchPhase(str, Enum):
    """Search phases

    IDLE → RESOLVING_LOCATION → DISCOVERING_PLACES → FETCHING_PRICES → ENRICHING_IMAGES → AGGREGATING → DONE
      ↘──────────────── FAILED ───────────────↗
                         ↘──────── EMPTY ────────↗
    """
    IDLE = "IDLE"
    RESOLVING_LOCATION = "RESOLVING_LOCATION"
    DISCOVERING_PLACES = "DISCOVERING_PLACES"
    FETCHING_PRICES = "FETCHING_PRICES"
    ENRICHING_IMAGES = "ENRICHING_IMAGES"
    AGGREGATING = "AGGREGATING"
    DONE = "DONE"
    FAILED = "FAILED"
    EMPTY = "EMPTY"


_PIPELINE_ORDER = [
    SearchPhase.IDLE,
    SearchPhase.RESOLVING_LOCATION,
    SearchPhase.DISCOVERING_PLACES,
    SearchPhase.FETCHING_PRICES,
    SearchPhase.ENRICHING_IMAGES,
    SearchPhase.AGGREGATING,
    SearchPhase.DONE,
]

TERMINAL_PHASES = (SearchPhase.DONE, SearchPhase.FAILED, SearchPhase.EMPTY)
CAN_FAIL_FROM = (
    SearchPhase.IDLE,
    SearchPhase.RESOLVING_LOCATION,
    SearchPhase.DISCOVERING_PLACES,
    SearchPhase.FETCHING_PRICES,
)
CAN_EMPTY_FROM = (SearchPhase.DISCOVERING_PLACES, SearchPhase.FETCHING_PRICES)

EMPTY_NO_STORES = "no stores found"
EMPTY_NO_PRICED_ITEMS = "no priced items"


class InvalidTransition(RuntimeError):
    """Raised when a phase change would move the search backwards or out of a terminal state"""


class SearchState:
    """Holds the observable state of one search session.

    Only the latest progress label is kept; there is no event log.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.phase = SearchPhase.IDLE
        self.progress_label = ""
        self.generation = 0
        self.started_at: Optional[datetime] = None
        self.last_updated: Optional[datetime] = None
        self.error: Optional[ApplicationError] = None
        self.error_message: Optional[str] = None
        self.empty_reason: Optional[str] = None
        self.empty_message: Optional[str] = None
        self.search_descriptor: Optional[str] = None
        self.groups: List[LocationGroup] = []
        self.citations: List[Citation] = []
        self.metadata: Dict[str, Any] = {}
        self.version = 0  # bumped on every observable change

    def _touch(self):
        self.last_updated = datetime.now(timezone.utc)
        self.version += 1

    def next_generation(self) -> int:
        """Start a new run: bump the generation and clear every previous result"""
        self.generation += 1
        self.phase = SearchPhase.IDLE
        self.progress_label = ""
        self.error = None
        self.error_message = None
        self.empty_reason = None
        self.empty_message = None
        self.search_descriptor = None
        self.groups = []
        self.citations = []
        self.metadata = {"candidates": 0, "priced": 0, "degraded": 0}
        self.started_at = datetime.now(timezone.utc)
        self._touch()
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def is_terminal(self) -> bool:
        """Check if search is in terminal state"""
        return self.phase in TERMINAL_PHASES

    def enter(self, phase: SearchPhase, label: str):
        """Move forward to ``phase`` and publish its progress label"""
        if phase in TERMINAL_PHASES and phase != SearchPhase.DONE:
            raise InvalidTransition(f"use fail()/finish_empty() to enter {phase.value}")
        if self.is_terminal():
            raise InvalidTransition(f"search already finished in {self.phase.value}")
        if _PIPELINE_ORDER.index(phase) <= _PIPELINE_ORDER.index(self.phase):
            raise InvalidTransition(f"cannot move from {self.phase.value} to {phase.value}")
        self.phase = phase
        self.progress_label = label
        self._touch()
        logger.debug(f"[SEARCH] {self.session_id} -> {phase.value}: {label}")

    def set_label(self, label: str):
        """Update the progress label without changing phase"""
        if self.is_terminal():
            return
        self.progress_label = label
        self._touch()

    def fail(self, error: ApplicationError, citations: Optional[List[Citation]] = None):
        if self.phase not in CAN_FAIL_FROM:
            raise InvalidTransition(f"cannot fail from {self.phase.value}")
        self.phase = SearchPhase.FAILED
        self.error = error
        self.error_message = error.message
        self.progress_label = ""
        self.groups = []
        self.citations = list(citations or [])
        self._touch()

    def finish_empty(self, reason: str, message: str, citations: Optional[List[Citation]] = None):
        if self.phase not in CAN_EMPTY_FROM:
            raise InvalidTransition(f"cannot finish empty from {self.phase.value}")
        self.phase = SearchPhase.EMPTY
        self.empty_reason = reason
        self.empty_message = message
        self.progress_label = ""
        self.groups = []
        self.citations = list(citations or [])
        self._touch()

    def complete(self, groups: List[LocationGroup], citations: List[Citation]):
        if self.phase != SearchPhase.AGGREGATING:
            raise InvalidTransition(f"cannot complete from {self.phase.value}")
        self.phase = SearchPhase.DONE
        self.progress_label = ""
        self.groups = groups
        self.citations = citations
        self._touch()

    def snapshot(self) -> SearchResult:
        return SearchResult(
            session_id=self.session_id,
            phase=self.phase.value,
            progress_label=self.progress_label,
            error_message=self.error_message,
            info_message=self.empty_message,
            error_code=self.error.code.value if self.error else None,
            empty_reason=self.empty_reason,
            search_descriptor=self.search_descriptor,
            groups=list(self.groups),
            citations=list(self.citations),
            candidate_count=self.metadata.get("candidates", 0),
            priced_count=self.metadata.get("priced", 0),
            degraded_count=self.metadata.get("degraded", 0),
        )
