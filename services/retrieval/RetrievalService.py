"""Similarity search, item lookup and client timelines, all behind the access predicate."""

import math
from collections import Counter
from datetime import date

from services.access.AccessPolicy import AccessPolicy
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.errors import InvalidQueryError, NotFoundError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.RetryPolicy import RetryPolicy
from shared.models.content import Chunk, ContentItem, ContentType
from shared.models.identity import Principal, Scope
from shared.models.search import RankedChunk, SearchFilters, TimelineEntry
from shared.stores.ContentStoreInterface import ContentStoreInterface

SUMMARY_LENGTH = 300


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of the angle between two vectors. A zero-norm vector scores 0."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def _rank_key(scored: tuple[float, Chunk]) -> tuple:
    similarity, chunk = scored
    session_date = chunk.metadata.session_date
    # newer first, undated last
    date_key = (0, -session_date.toordinal()) if session_date else (1, 0)
    return (-similarity, date_key, chunk.item_id, chunk.index)


def count_by_type(results: list[RankedChunk]) -> dict[str, int]:
    """Number of hits per content type, for response summaries."""
    return dict(Counter(result.content_type.value for result in results))


class RetrievalService:
    """Read side of the engine.

    Config:
        SEARCH_DEFAULT_THRESHOLD (0.3), SEARCH_DEFAULT_LIMIT (10), SEARCH_MAX_LIMIT (50),
        TIMELINE_MAX_LIMIT (100).
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        content_store: ContentStoreInterface,
        embed_client: EmbedClientInterface,
        access_policy: AccessPolicy,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = content_store
        self._embed_client = embed_client
        self._policy = access_policy
        self._retry = retry_policy or RetryPolicy(helper_config)
        self.default_threshold = float(helper_config.get_number_val("SEARCH_DEFAULT_THRESHOLD", default=0.3))
        self.default_limit = helper_config.get_int_val("SEARCH_DEFAULT_LIMIT", default=10, minimum=1)
        self.max_limit = helper_config.get_int_val("SEARCH_MAX_LIMIT", default=50, minimum=1)
        self.timeline_max_limit = helper_config.get_int_val("TIMELINE_MAX_LIMIT", default=100, minimum=1)

    ##########################################
    ############### VALIDATION ###############
    ##########################################

    def _validate_query_vector(self, query_vector: list[float]) -> None:
        if not query_vector:
            raise InvalidQueryError("Query vector is empty.")
        expected = self._embed_client.get_dimension()
        if len(query_vector) != expected:
            raise InvalidQueryError(f"Query vector has dimension {len(query_vector)}, expected {expected}.")
        if any(not math.isfinite(value) for value in query_vector):
            raise InvalidQueryError("Query vector contains non-finite values.")
        if not any(query_vector):
            raise InvalidQueryError("Query vector has zero norm.")

    @staticmethod
    def _validate_threshold(threshold: float) -> float:
        try:
            threshold = float(threshold)
        except (TypeError, ValueError):
            raise InvalidQueryError(f"Threshold must be a number, got {threshold!r}.")
        if math.isnan(threshold) or threshold < -1 or threshold > 1:
            raise InvalidQueryError(f"Threshold must lie in [-1, 1], got {threshold}.")
        return threshold

    @staticmethod
    def _clamp(limit: int, upper: int) -> int:
        return max(1, min(int(limit), upper))

    ##########################################
    ################ SEARCH ##################
    ##########################################

    async def search(
        self,
        principal: Principal,
        query_vector: list[float],
        filters: SearchFilters | None = None,
        threshold: float | None = None,
        limit: int | None = None,
    ) -> list[RankedChunk]:
        """Rank the caller's readable chunks by cosine similarity to a query vector.

        Access and filters are applied to every candidate before scoring. Results
        below threshold (inclusive bound) are dropped.

        Args:
            principal (Principal): The verified caller. Needs the read scope.
            query_vector (list[float]): The embedded query.
            filters (SearchFilters | None): Optional restrictions.
            threshold (float | None): Minimum similarity, defaults to SEARCH_DEFAULT_THRESHOLD.
            limit (int | None): Max results, clamped to [1, SEARCH_MAX_LIMIT].

        Returns:
            list[RankedChunk]: Best first. Empty when nothing visible matches.

        Raises:
            InvalidQueryError: Bad query vector or threshold.
        """
        principal.require_scope(Scope.READ)
        self._validate_query_vector(query_vector)
        threshold = self._validate_threshold(self.default_threshold if threshold is None else threshold)
        limit = self._clamp(self.default_limit if limit is None else limit, self.max_limit)

        scope = await self._policy.scope_for(principal.identity)
        owner_scope = scope.owner_scope
        if owner_scope.is_empty():
            return []

        candidates = await self._store.find_candidate_chunks(owner_scope, filters)
        dimension = len(query_vector)
        scored: list[tuple[float, Chunk]] = []
        for chunk in candidates:
            if not scope.admits(chunk.metadata):
                continue
            if filters is not None and not filters.matches(chunk.metadata):
                continue
            if len(chunk.vector) != dimension:
                self.logging.warning("Skipping chunk %s with dimension %d.", chunk.id, len(chunk.vector))
                continue
            similarity = cosine_similarity(query_vector, chunk.vector)
            if similarity >= threshold:
                scored.append((similarity, chunk))

        scored.sort(key=_rank_key)
        top = scored[:limit]
        self.logging.debug(
            "Search by %s '%s': %d candidates, %d above threshold, returning %d.",
            principal.role.value, principal.identity.id, len(candidates), len(scored), len(top),
        )
        return await self._enrich(top)

    async def _enrich(self, scored: list[tuple[float, Chunk]]) -> list[RankedChunk]:
        """Join presentation fields of the parent items. Access was already checked on the chunks."""
        items = await self._store.get_items([chunk.item_id for _, chunk in scored])
        results: list[RankedChunk] = []
        for similarity, chunk in scored:
            item = items.get(chunk.item_id)
            results.append(RankedChunk(
                chunk_id=chunk.id,
                item_id=chunk.item_id,
                index=chunk.index,
                text=chunk.text,
                similarity=similarity,
                content_type=chunk.metadata.content_type,
                title=item.title if item else chunk.metadata.title,
                session_date=item.session_date if item else chunk.metadata.session_date,
                owner_coach_id=chunk.metadata.owner_coach_id,
                owner_client_id=chunk.metadata.owner_client_id,
            ))
        return results

    async def search_text(
        self,
        principal: Principal,
        query: str,
        filters: SearchFilters | None = None,
        threshold: float | None = None,
        limit: int | None = None,
    ) -> list[RankedChunk]:
        """Embed a natural-language query and search with it.

        Raises:
            InvalidQueryError: Empty query.
            ProviderError: Embedding failed after retries.
        """
        principal.require_scope(Scope.READ)
        if not query or not query.strip():
            raise InvalidQueryError("Query text is empty.")
        vectors = await self._retry.run(self._embed_client.do_embed, [query])
        return await self.search(principal, vectors[0], filters=filters, threshold=threshold, limit=limit)

    ##########################################
    ################ LOOKUP ##################
    ##########################################

    async def get_item(self, principal: Principal, item_id: str) -> ContentItem:
        """Fetch one item the caller may read.

        Raises:
            NotFoundError: Missing, still pending, or not readable. The three cases look the same.
        """
        principal.require_scope(Scope.READ)
        item = await self._store.get_item(item_id)
        if item is None or not item.is_complete() or not await self._policy.can_read(principal.identity, item):
            raise NotFoundError(f"Content item '{item_id}' not found.")
        return item

    async def get_item_chunks(self, principal: Principal, item_id: str) -> list[Chunk]:
        await self.get_item(principal, item_id)
        return await self._store.list_chunks(item_id)

    ##########################################
    ############### TIMELINE #################
    ##########################################

    async def timeline(
        self,
        principal: Principal,
        client_id: str,
        start: date | None = None,
        end: date | None = None,
        content_types: list[ContentType] | None = None,
        limit: int = 50,
    ) -> list[TimelineEntry]:
        """A client's readable items, newest session first, undated last.

        Raises:
            NotFoundError: If the caller may not access the client.
        """
        principal.require_scope(Scope.READ)
        if not await self._policy.can_access_client(principal.identity, client_id):
            raise NotFoundError(f"Client '{client_id}' not found.")
        limit = self._clamp(limit, self.timeline_max_limit)

        scope = await self._policy.scope_for(principal.identity)
        filters = SearchFilters(
            owner_client_id=client_id,
            content_types=content_types or None,
            session_date_from=start,
            session_date_to=end,
        )
        items = [
            item for item in await self._store.find_items(scope.owner_scope, filters)
            if scope.admits(item) and filters.matches(item)
        ]
        items.sort(key=lambda item: item.created_at, reverse=True)
        items.sort(key=lambda item: (0, -item.session_date.toordinal()) if item.session_date else (1, 0))
        return [self._to_timeline_entry(item) for item in items[:limit]]

    @staticmethod
    def _to_timeline_entry(item: ContentItem) -> TimelineEntry:
        content = item.raw_content.strip()
        summary = content[:SUMMARY_LENGTH] + ("..." if len(content) > SUMMARY_LENGTH else "")
        title = item.title or f"{item.content_type.value} - {item.session_date.isoformat() if item.session_date else 'No date'}"
        return TimelineEntry(
            item_id=item.id,
            content_type=item.content_type,
            title=title,
            session_date=item.session_date,
            summary=summary,
            owner_coach_id=item.owner_coach_id,
            metadata=item.metadata,
        )
