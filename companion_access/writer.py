# companion_access/writer.py

from __future__ import annotations

from .errors import CreationError, StoreError
from .logging_config import get_logger
from .models import Caller, Companion, CompanionFields
from .storage.sqlite_store import SqliteStore  # noqa: TC001

logger = get_logger(__name__)


class CompanionWriter:
    """
    Inserts companions attributed to the caller.

    Precondition: the caller has already passed QuotaEnforcer.can_create().
    The writer does not check quotas itself.
    """

    def __init__(self, store: SqliteStore) -> None:
        self.store = store

    def create(self, fields: CompanionFields, caller: Caller) -> Companion:
        """
        Insert, then read the new record back.

        A rejected insert raises CreationError. A failing read-back raises
        plain StoreError: the row was written, only fetching it failed.
        """
        try:
            companion_id = self.store.insert_companion(fields, author=caller.user_id)
        except StoreError as e:
            raise CreationError(f"Failed to create a companion: {e}") from e

        companion = self.store.get_companion(companion_id)
        if companion is None:
            raise CreationError("Failed to create a companion: store returned no record")

        logger.info("[CompanionWriter.create] user=%s created companion=%s", caller.user_id, companion.id)
        return companion
