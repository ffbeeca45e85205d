# companion_access/query/engine.py

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import builtins

from ..logging_config import get_logger
from ..models import Companion, CompanionFilter, Page
from ..storage.sqlite_store import SqliteStore  # noqa: TC001

logger = get_logger(__name__)


class CompanionQueryEngine:
    """
    Filtered, paginated listing over the companions collection.

    - subject: substring match on `subject`
    - topic:   substring match on `topic` OR `name`
    - both:    subject AND (topic OR name)
    - neither: every companion

    Matching is a literal substring test on casefolded text (the store's
    `casefold` SQL function), so it is case-insensitive beyond ASCII and
    `%` or `_` in the filter carry no special meaning. Result order is
    whatever the store returns; no sort is imposed here.
    """

    def __init__(self, store: SqliteStore) -> None:
        self.store = store

    @staticmethod
    def compose_where(flt: CompanionFilter) -> tuple[str | None, builtins.list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        if flt.subject:
            clauses.append("instr(casefold(subject), ?) > 0")
            params.append(flt.subject.casefold())

        if flt.topic:
            needle = flt.topic.casefold()
            clauses.append("(instr(casefold(topic), ?) > 0 OR instr(casefold(name), ?) > 0)")
            params.extend([needle, needle])

        if not clauses:
            return None, []
        return " AND ".join(clauses), params

    def list(
        self,
        flt: CompanionFilter | None = None,
        page: Page | None = None,
    ) -> builtins.list[Companion]:
        flt = flt or CompanionFilter()
        page = page or Page()

        if page.limit == 0:
            return []

        where, params = self.compose_where(flt)
        companions = self.store.select_companions(
            where=where,
            params=params,
            limit=page.limit,
            offset=page.offset,
        )
        logger.debug(
            "[CompanionQueryEngine.list] subject=%r topic=%r page=%d limit=%d -> %d rows",
            flt.subject,
            flt.topic,
            page.page,
            page.limit,
            len(companions),
        )
        return companions
