# companion_access/companions.py

from __future__ import annotations

from typing import Any

from .config import DEFAULT_QUOTA_TIERS, DEFAULT_SQLITE_PATH, DEFAULT_UNLIMITED_PLAN, load_config
from .errors import NotFound, QuotaExceeded
from .history.aggregator import SessionHistoryAggregator
from .identity.provider import IdentityProvider, StaticIdentityProvider
from .logging_config import get_logger, setup_logging
from .models import (
    Caller,
    Companion,
    CompanionFields,
    CompanionFilter,
    Page,
    SessionHistoryEntry,
)
from .query.engine import CompanionQueryEngine
from .quota.enforcer import QuotaEnforcer
from .storage.sqlite_store import SqliteStore
from .writer import CompanionWriter

logger = get_logger(__name__)


class CompanionService:
    """
    Public facade.

    - list_companions() -> CompanionQueryEngine
    - recent_sessions_*() -> SessionHistoryAggregator
    - can_create_companion() -> QuotaEnforcer
    - create_companion() -> CompanionWriter
    - everything else is a direct read/write on SqliteStore

    Callers are passed in explicitly; nothing here reads ambient auth state.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        identity_provider: IdentityProvider | None = None,
    ) -> None:
        if config is None:
            config = load_config()
        setup_logging(config)

        sqlite_path = config.get("sqlite_path", DEFAULT_SQLITE_PATH)
        unlimited_plan = config.get("unlimited_plan", DEFAULT_UNLIMITED_PLAN)
        quota_tiers = config.get("quota_tiers", DEFAULT_QUOTA_TIERS)
        self.default_page_size = int(config.get("default_page_size", 10))
        self.recent_sessions_limit = int(config.get("recent_sessions_limit", 10))

        # Core components
        self.store = SqliteStore(path=sqlite_path)
        self.query_engine = CompanionQueryEngine(store=self.store)
        self.history = SessionHistoryAggregator(store=self.store)
        self.quota = QuotaEnforcer(
            store=self.store,
            unlimited_plan=unlimited_plan,
            tiers=quota_tiers,
        )
        self.writer = CompanionWriter(store=self.store)
        self.identity_provider = identity_provider or StaticIdentityProvider()

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    def resolve_caller(self, user_id: str) -> Caller:
        return self.identity_provider.resolve(user_id)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def list_companions(
        self,
        flt: CompanionFilter | None = None,
        page: Page | None = None,
    ) -> list[Companion]:
        if page is None:
            page = Page(limit=self.default_page_size)
        return self.query_engine.list(flt, page)

    def get_companion(self, companion_id: str) -> Companion:
        """
        Single companion by id.

        Raises NotFound when no such record exists; StoreError when the
        lookup itself fails. The two are never conflated.
        """
        companion = self.store.get_companion(companion_id)
        if companion is None:
            raise NotFound(companion_id)
        return companion

    def recent_sessions_global(self, limit: int | None = None) -> list[Companion]:
        if limit is None:
            limit = self.recent_sessions_limit
        return self.history.recent_global(limit)

    def recent_sessions_for_user(self, user_id: str, limit: int | None = None) -> list[Companion]:
        if limit is None:
            limit = self.recent_sessions_limit
        return self.history.recent_for_user(user_id, limit)

    def companions_owned_by(self, user_id: str) -> list[Companion]:
        return self.store.list_companions_by_author(user_id)

    # ------------------------------------------------------------------ #
    # Quota + writes
    # ------------------------------------------------------------------ #

    def can_create_companion(self, caller: Caller) -> bool:
        return self.quota.can_create(caller)

    def create_companion(self, fields: CompanionFields, caller: Caller) -> Companion:
        """
        Insert a companion owned by `caller`.

        Does not check the quota; call can_create_companion() first, or use
        create_companion_checked().
        """
        return self.writer.create(fields, caller)

    def create_companion_checked(self, fields: CompanionFields, caller: Caller) -> Companion:
        """
        Quota check followed by the insert.

        The two steps are not atomic: concurrent creates by the same caller
        can both pass the check.
        """
        if not self.quota.can_create(caller):
            quota = self.quota.quota_for(caller) or 0
            logger.info("[CompanionService.create_companion_checked] user=%s denied, quota=%d", caller.user_id, quota)
            raise QuotaExceeded(caller.user_id, quota)
        return self.writer.create(fields, caller)

    def record_session_launch(self, companion_id: str, caller: Caller) -> SessionHistoryEntry:
        entry = self.store.insert_session(companion_id=companion_id, user_id=caller.user_id)
        logger.debug(
            "[CompanionService.record_session_launch] user=%s companion=%s",
            caller.user_id,
            companion_id,
        )
        return entry

    def close(self) -> None:
        self.store.close()
