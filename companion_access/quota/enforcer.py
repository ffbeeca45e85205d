# companion_access/quota/enforcer.py

from __future__ import annotations

from collections.abc import Sequence

from ..config import DEFAULT_QUOTA_TIERS, DEFAULT_UNLIMITED_PLAN
from ..logging_config import get_logger
from ..models import Caller
from ..storage.sqlite_store import SqliteStore  # noqa: TC001

logger = get_logger(__name__)


class QuotaEnforcer:
    """
    Decides whether a caller may create another companion.

    Rules, first match wins:
    1. plan == unlimited_plan -> always allowed
    2. first feature flag in `tiers` the caller holds -> that quota
    3. nothing recognized -> quota 0

    Allowed iff owned companion count < quota. A failing count query raises
    StoreError; it is never treated as approval.
    """

    def __init__(
        self,
        store: SqliteStore,
        unlimited_plan: str = DEFAULT_UNLIMITED_PLAN,
        tiers: Sequence[tuple[str, int]] = DEFAULT_QUOTA_TIERS,
    ) -> None:
        self.store = store
        self.unlimited_plan = unlimited_plan
        self.tiers = tuple(tiers)

    def quota_for(self, caller: Caller) -> int | None:
        """Resolved quota for the caller; None means unlimited."""
        entitlement = caller.entitlement
        if entitlement.plan is not None and entitlement.plan == self.unlimited_plan:
            return None
        for feature, quota in self.tiers:
            if feature in entitlement.features:
                return quota
        return 0

    def can_create(self, caller: Caller) -> bool:
        quota = self.quota_for(caller)
        if quota is None:
            logger.debug("[QuotaEnforcer] user=%s on unlimited plan", caller.user_id)
            return True

        owned = self.store.count_companions_by_author(caller.user_id)
        allowed = owned < quota
        logger.debug(
            "[QuotaEnforcer] user=%s owned=%d quota=%d allowed=%s",
            caller.user_id,
            owned,
            quota,
            allowed,
        )
        return allowed
