import logging
from typing import Callable, List, Tuple

from app.models.analysis_record import AnalysisRecord

logger = logging.getLogger(__name__)

Listener = Callable[[AnalysisRecord], None]
Predicate = Callable[[AnalysisRecord], bool]


class HistoryStore:
    """Append-only, in-memory history of analysis records for one session.

    Insertion order is the order in which analyses completed. There is no
    update or delete; the whole store is dropped when its session ends.
    Records with an already-seen id are kept as separate entries.
    """

    def __init__(self):
        self._records: List[AnalysisRecord] = []
        self._listeners: List[Listener] = []

    def append(self, record: AnalysisRecord) -> None:
        self._records.append(record)
        logger.debug("Record appended", extra={"record_id": record.id, "size": len(self._records)})
        for listener in list(self._listeners):
            listener(record)

    def all(self) -> Tuple[AnalysisRecord, ...]:
        return tuple(self._records)

    def search(self, predicate: Predicate) -> Tuple[AnalysisRecord, ...]:
        return tuple(r for r in self._records if predicate(r))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` to be called with each newly appended record.

        Returns a callable that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __len__(self) -> int:
        return len(self._records)
