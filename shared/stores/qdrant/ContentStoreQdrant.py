import httpx

from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.helper.HelperConfig import HelperConfig
from shared.models.access import OwnerScope
from shared.models.content import Chunk, ContentItem, ItemStatus
from shared.models.search import SearchFilters
from shared.stores.ContentStoreInterface import ContentStoreInterface

# items carry no meaningful vector; Qdrant still requires one per point
ITEM_PLACEHOLDER_VECTOR = [1.0]


class ContentStoreQdrant(ContentStoreInterface):
    """Content store over the Qdrant REST API.

    Two collections are used: "<prefix>_items" holds one point per content
    item (payload only) and "<prefix>_chunks" holds one point per chunk with
    its embedding and a flat VectorPoint payload.
    """

    def __init__(self, helper_config: HelperConfig, rag_client: RAGClientInterface | None = None):
        super().__init__(helper_config=helper_config)
        self.rag_client = rag_client or RAGClientQdrant(helper_config=helper_config)
        self.dimension = helper_config.get_int_val("EMBED_DIMENSION", default=1536, minimum=1)
        prefix = self.rag_client.get_collection_prefix()
        self.items_collection = f"{prefix}_items"
        self.chunks_collection = f"{prefix}_chunks"

    def _get_engine_name(self) -> str:
        return "Qdrant"

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        await self.rag_client.boot(transport=transport)
        if not await self.rag_client.do_existence_check(self.items_collection):
            await self.rag_client.do_create_collection(self.items_collection, vector_size=1, distance="Dot")
        if not await self.rag_client.do_existence_check(self.chunks_collection):
            await self.rag_client.do_create_collection(self.chunks_collection, vector_size=self.dimension, distance="Cosine")
        self.logging.info("Qdrant content store ready (%s, %s).", self.items_collection, self.chunks_collection)

    async def close(self) -> None:
        await self.rag_client.close()

    ##########################################
    ############ FILTER BUILDER ##############
    ##########################################

    @staticmethod
    def _build_filter(owner_scope: OwnerScope | None = None, filters: SearchFilters | None = None, status_key: str = "status") -> dict:
        """Translate owner scope and filters into a Qdrant filter object."""
        must: list[dict] = [{"key": status_key, "match": {"value": ItemStatus.COMPLETE.value}}]
        should: list[dict] = []

        if owner_scope is not None:
            for key, ids in (
                ("owner_coach_id", owner_scope.coach_ids),
                ("owner_client_id", owner_scope.client_ids),
                ("organization_id", owner_scope.organization_ids),
            ):
                if ids:
                    should.append({"key": key, "match": {"any": sorted(ids)}})

        if filters is not None:
            if filters.content_types:
                must.append({"key": "content_type", "match": {"any": [ct.value for ct in filters.content_types]}})
            for key in ("owner_coach_id", "owner_client_id", "organization_id"):
                value = getattr(filters, key)
                if value is not None:
                    must.append({"key": key, "match": {"value": value}})
            day_range: dict = {}
            if filters.session_date_from is not None:
                day_range["gte"] = filters.session_date_from.toordinal()
            if filters.session_date_to is not None:
                day_range["lte"] = filters.session_date_to.toordinal()
            if day_range:
                must.append({"key": "session_day", "range": day_range})

        query_filter: dict = {"must": must}
        if should:
            query_filter["should"] = should
        return query_filter

    @staticmethod
    def _item_filter(item_id: str) -> dict:
        return {"must": [{"key": "item_id", "match": {"value": item_id}}]}

    ##########################################
    ############## CONVERSION ################
    ##########################################

    @staticmethod
    def _item_to_payload(item: ContentItem) -> dict:
        payload = item.model_dump(mode="json")
        payload["session_day"] = item.session_date.toordinal() if item.session_date else None
        return payload

    @staticmethod
    def _payload_to_item(payload: dict) -> ContentItem:
        data = {key: value for key, value in payload.items() if key != "session_day"}
        return ContentItem.model_validate(data)

    @staticmethod
    def _point_to_chunk(point: dict) -> Chunk:
        vector = point.get("vector") or []
        return VectorPoint.model_validate(point.get("payload") or {}).to_chunk(str(point["id"]), vector)

    ##########################################
    ################ ITEMS ###################
    ##########################################

    async def create_item(self, item: ContentItem) -> None:
        await self.rag_client.do_upsert_points(
            self.items_collection,
            [{"id": item.id, "vector": ITEM_PLACEHOLDER_VECTOR, "payload": self._item_to_payload(item)}],
        )

    async def get_item(self, item_id: str) -> ContentItem | None:
        points = await self.rag_client.do_retrieve_points(self.items_collection, [item_id])
        if not points:
            return None
        return self._payload_to_item(points[0].get("payload") or {})

    async def get_items(self, item_ids: list[str]) -> dict[str, ContentItem]:
        points = await self.rag_client.do_retrieve_points(self.items_collection, list(dict.fromkeys(item_ids)))
        items = [self._payload_to_item(point.get("payload") or {}) for point in points]
        return {item.id: item for item in items}

    async def mark_item_complete(self, item_id: str, chunk_count: int) -> None:
        # chunks first, so a complete item never has pending chunks
        await self.rag_client.do_set_payload(
            self.chunks_collection,
            {"item_status": ItemStatus.COMPLETE.value},
            query_filter=self._item_filter(item_id),
        )
        await self.rag_client.do_set_payload(
            self.items_collection,
            {"status": ItemStatus.COMPLETE.value, "chunk_count": chunk_count},
            point_ids=[item_id],
        )

    async def delete_item(self, item_id: str) -> bool:
        existed = bool(await self.rag_client.do_retrieve_points(self.items_collection, [item_id], with_payload=False))
        await self.rag_client.do_delete_points(self.chunks_collection, query_filter=self._item_filter(item_id))
        await self.rag_client.do_delete_points(self.items_collection, point_ids=[item_id])
        return existed

    async def find_items(self, owner_scope: OwnerScope, filters: SearchFilters | None = None) -> list[ContentItem]:
        if owner_scope.is_empty():
            return []
        points = await self.rag_client.do_scroll_all(
            self.items_collection,
            query_filter=self._build_filter(owner_scope, filters, status_key="status"),
            with_vector=False,
        )
        items = [self._payload_to_item(point.get("payload") or {}) for point in points]
        # the backend filter only narrows; re-check locally
        return [
            item for item in items
            if item.is_complete() and owner_scope.touches(item) and (filters is None or filters.matches(item))
        ]

    ##########################################
    ################ CHUNKS ##################
    ##########################################

    async def add_chunk(self, chunk: Chunk) -> None:
        payload = VectorPoint.from_chunk(chunk).model_dump(mode="json")
        await self.rag_client.do_upsert_points(
            self.chunks_collection,
            [{"id": chunk.id, "vector": chunk.vector, "payload": payload}],
        )

    async def list_chunks(self, item_id: str) -> list[Chunk]:
        points = await self.rag_client.do_scroll_all(
            self.chunks_collection,
            query_filter=self._item_filter(item_id),
            with_vector=True,
        )
        chunks = [self._point_to_chunk(point) for point in points]
        return sorted(chunks, key=lambda chunk: chunk.index)

    async def find_candidate_chunks(self, owner_scope: OwnerScope, filters: SearchFilters | None = None) -> list[Chunk]:
        if owner_scope.is_empty():
            return []
        points = await self.rag_client.do_scroll_all(
            self.chunks_collection,
            query_filter=self._build_filter(owner_scope, filters, status_key="item_status"),
            with_vector=True,
        )
        candidates: list[Chunk] = []
        for point in points:
            if (point.get("payload") or {}).get("item_status") != ItemStatus.COMPLETE.value:
                continue
            chunk = self._point_to_chunk(point)
            if owner_scope.touches(chunk.metadata) and (filters is None or filters.matches(chunk.metadata)):
                candidates.append(chunk)

        # chunks are flipped before their item; a failed completion leaves them orphaned
        parents = await self.get_items([chunk.item_id for chunk in candidates])
        complete = {item_id for item_id, item in parents.items() if item.is_complete()}
        orphaned = [chunk for chunk in candidates if chunk.item_id not in complete]
        if orphaned:
            self.logging.warning(
                "Skipping %d chunks whose item is missing or incomplete.", len(orphaned)
            )
        candidates = [chunk for chunk in candidates if chunk.item_id in complete]
        self.logging.debug("Qdrant returned %d candidate chunks.", len(candidates))
        return candidates
