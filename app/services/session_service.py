import logging
import uuid
from datetime import datetime
from typing import Dict, Optional

from app.models.analysis_record import AnalysisRecord, utcnow
from app.schemas.dashboard import DashboardMetrics
from app.services.history_store import HistoryStore
from app.services.metrics_service import MetricsAggregator

logger = logging.getLogger(__name__)


class AnalysisSession:
    """One dashboard session: owns its history and a cached aggregate.

    The cache is dropped on every append, so ``metrics()`` always equals a
    full recomputation over ``history.all()``.
    """

    def __init__(self, session_id: Optional[str] = None, aggregator: Optional[MetricsAggregator] = None):
        self.id = session_id or str(uuid.uuid4())
        self.created_at: datetime = utcnow()
        self.history = HistoryStore()
        self._aggregator = aggregator or MetricsAggregator()
        self._metrics: Optional[DashboardMetrics] = None
        self._unsubscribe = self.history.subscribe(self._on_append)

    def _on_append(self, record: AnalysisRecord) -> None:
        self._metrics = None
        logger.info(
            "Analysis recorded",
            extra={"session_id": self.id, "record_id": record.id, "safety_score": record.safety_score},
        )

    def metrics(self) -> DashboardMetrics:
        if self._metrics is None:
            self._metrics = self._aggregator.compute(self.history.all())
        return self._metrics

    def close(self) -> None:
        self._unsubscribe()
        self._metrics = None


class SessionRegistry:
    """In-memory sessions keyed by id. Nothing outlives the process."""

    def __init__(self):
        self._sessions: Dict[str, AnalysisSession] = {}

    def create(self) -> AnalysisSession:
        session = AnalysisSession()
        self._sessions[session.id] = session
        logger.info("Session started", extra={"session_id": session.id})
        return session

    def get(self, session_id: str) -> Optional[AnalysisSession]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info(
            "Session ended",
            extra={"session_id": session_id, "records_discarded": len(session.history)},
        )
        return True

    def __len__(self) -> int:
        return len(self._sessions)
