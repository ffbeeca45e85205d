# companion_access/history/aggregator.py

from __future__ import annotations

from ..logging_config import get_logger
from ..models import Companion, SessionHistoryEntry
from ..storage.sqlite_store import SqliteStore  # noqa: TC001

logger = get_logger(__name__)


def _check_limit(limit: int) -> None:
    # SQLite treats a negative LIMIT as "no limit"
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


class SessionHistoryAggregator:
    """
    Joins the session_history log against the companion catalog.

    The output follows history order (most recent launch first), one
    companion per history entry, repeats included. Entries pointing at a
    companion that no longer exists are dropped without shifting the rest.
    """

    def __init__(self, store: SqliteStore) -> None:
        self.store = store

    def recent_for_user(self, user_id: str, limit: int = 10) -> list[Companion]:
        _check_limit(limit)
        sessions = self.store.list_recent_sessions(limit=limit, user_id=user_id)
        return self._join(sessions, scope=f"user={user_id}")

    def recent_global(self, limit: int = 10) -> list[Companion]:
        _check_limit(limit)
        sessions = self.store.list_recent_sessions(limit=limit)
        return self._join(sessions, scope="global")

    def _join(self, sessions: list[SessionHistoryEntry], scope: str) -> list[Companion]:
        if not sessions:
            return []

        companion_ids = [s.companion_id for s in sessions]

        # one membership query for the distinct ids
        companions = self.store.list_companions_by_ids(list(dict.fromkeys(companion_ids)))
        companion_by_id = {c.id: c for c in companions}

        results: list[Companion] = []
        for companion_id in companion_ids:
            companion = companion_by_id.get(companion_id)
            if companion is None:
                continue
            results.append(companion)

        dropped = len(companion_ids) - len(results)
        if dropped:
            logger.info(
                "[SessionHistoryAggregator] %s: skipped %d entries with missing companions",
                scope,
                dropped,
            )
        return results
