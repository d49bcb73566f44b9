"""Similarity search with structured filters and visibility enforcement.

Search runs in two phases. A coarse metadata predicate is pushed to the
store: exact-match filters plus the visibility cases the store can express
(public, private-and-owned, and every shared record). Tags, references and
``shared_with`` membership live in JSON-encoded strings the store cannot
inspect, so they are checked after decoding, together with the full read
policy. When a visibility context is present the store is asked for
``limit * overfetch_factor`` candidates to make up for what the second phase
drops.
"""

from ..core.enums import MemoryType, Visibility
from ..core.exceptions import ValidationError
from ..core.schemas import DateRange, Memory, SearchFilters, SearchResult, VisibilityContext
from ..core.visibility import HUMAN_OWNER_ID, can_access, is_admin
from ..storage.base import MemoryStoreBase, Where
from ..storage.codec import CREATED_AT_MS_KEY, iso_to_epoch_ms
from ..utils.logging_config import get_logger
from .predicates import all_of, any_of, eq, gte, lte

logger = get_logger(__name__)

DEFAULT_LIMIT = 10
OVERFETCH_FACTOR = 3
SCORE_DECREMENT = 0.1


def _contains_any(values: list[str], wanted: list[str] | None) -> bool:
    if not wanted:
        return True
    return any(w in values for w in wanted)


def matches_post_filters(memory: Memory, filters: SearchFilters | None) -> bool:
    """Tag and reference filters: a memory matches if it has ANY requested value."""
    if filters is None:
        return True
    meta = memory.metadata
    return _contains_any(meta.tags, filters.tags) and _contains_any(
        meta.references, filters.references
    )


def rank_score(rank: int, decrement: float = SCORE_DECREMENT) -> float:
    """Position-derived score: 1.0 for the first result, minus ``decrement`` per rank."""
    return max(0.0, round(1.0 - rank * decrement, 6))


class MemorySearchEngine:
    """Combines store queries, structured filters and the read policy."""

    def __init__(
        self,
        store: MemoryStoreBase,
        overfetch_factor: int = OVERFETCH_FACTOR,
        score_decrement: float = SCORE_DECREMENT,
        admin_actor: str = HUMAN_OWNER_ID,
    ) -> None:
        if overfetch_factor < 1:
            raise ValueError("overfetch_factor must be >= 1")
        self.store = store
        self.overfetch_factor = overfetch_factor
        self.score_decrement = score_decrement
        self.admin_actor = admin_actor

    def build_filter_where(self, filters: SearchFilters | None) -> Where | None:
        """Translate the store-expressible filters (type, creator, date range).

        Date bounds are compared as epoch milliseconds; records written without
        ``createdAtMs`` never match a date range.
        """
        if filters is None:
            return None
        date_range = filters.date_range or DateRange()
        start = iso_to_epoch_ms(date_range.from_)
        end = iso_to_epoch_ms(date_range.to)
        return all_of(
            eq("type", MemoryType(filters.type).value) if filters.type else None,
            eq("createdBy", filters.created_by) if filters.created_by else None,
            gte(CREATED_AT_MS_KEY, start) if start is not None else None,
            lte(CREATED_AT_MS_KEY, end) if end is not None else None,
        )

    def build_visibility_where(self, context: VisibilityContext | None) -> Where | None:
        """Coarse visibility predicate; None when no filtering applies.

        Over-approximates: every shared record passes and is checked later.
        Records with no ``visibility`` key (written before visibility existed)
        match none of the clauses, so actor-scoped searches never return them
        even though ``can_access`` treats them as public; the post-filter only
        narrows what this predicate lets through.
        """
        if context is None or is_admin(context.actor, context.admin_override, self.admin_actor):
            return None
        return any_of(
            eq("visibility", Visibility.PUBLIC.value),
            all_of(eq("visibility", Visibility.PRIVATE.value), eq("owner", context.actor)),
            eq("visibility", Visibility.SHARED.value),
        )

    def fetch_limit(self, limit: int, context: VisibilityContext | None) -> int:
        """Candidate cap sent to the store."""
        return limit * self.overfetch_factor if context is not None else limit

    async def search(
        self,
        query: str | None = None,
        filters: SearchFilters | None = None,
        limit: int = DEFAULT_LIMIT,
        context: VisibilityContext | None = None,
    ) -> list[SearchResult]:
        """Return up to ``limit`` results in store order (best match first for queries).

        Store failures propagate; no partial results are returned.
        """
        if limit < 1:
            raise ValidationError("limit must be a positive number")

        where = all_of(self.build_filter_where(filters), self.build_visibility_where(context))
        cap = self.fetch_limit(limit, context)

        if query:
            candidates = await self.store.query(query, where=where, limit=cap)
        else:
            candidates = await self.store.scan(where=where, limit=cap)

        survivors = [m for m in candidates if matches_post_filters(m, filters)]
        if context is not None:
            survivors = [
                m
                for m in survivors
                if can_access(
                    m, context.actor, context.admin_override, admin_actor=self.admin_actor
                )
            ]

        results = survivors[:limit]
        logger.debug(
            "memory_search_completed",
            query=bool(query),
            fetched=len(candidates),
            returned=len(results),
            fetch_limit=cap,
            actor=context.actor if context else None,
        )
        if not query:
            return [SearchResult(memory=m, score=1.0) for m in results]
        return [
            SearchResult(memory=m, score=rank_score(i, self.score_decrement))
            for i, m in enumerate(results)
        ]
