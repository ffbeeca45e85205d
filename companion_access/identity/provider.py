# companion_access/identity/provider.py

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ..errors import NotFound
from ..models import Caller, CallerEntitlement


class IdentityProvider(Protocol):
    """
    Resolves a caller id into a Caller (identity + plan + feature flags).

    Authentication itself lives outside this package; whatever fronts it
    implements this and hands the resulting Caller to CompanionService.
    """

    def resolve(self, user_id: str) -> Caller: ...


class StaticIdentityProvider:
    """
    In-process provider backed by a dict of user_id -> entitlement.

    Unknown users resolve to an empty entitlement (no plan, no features)
    unless strict=True, in which case they raise NotFound.
    """

    def __init__(
        self,
        entitlements: dict[str, CallerEntitlement] | None = None,
        strict: bool = False,
    ) -> None:
        self._entitlements = dict(entitlements or {})
        self.strict = strict

    def grant(
        self,
        user_id: str,
        plan: str | None = None,
        features: Iterable[str] = (),
    ) -> None:
        self._entitlements[user_id] = CallerEntitlement(plan=plan, features=frozenset(features))

    def resolve(self, user_id: str) -> Caller:
        entitlement = self._entitlements.get(user_id)
        if entitlement is None:
            if self.strict:
                raise NotFound(user_id, collection="callers")
            entitlement = CallerEntitlement()
        return Caller(user_id=user_id, entitlement=entitlement)
