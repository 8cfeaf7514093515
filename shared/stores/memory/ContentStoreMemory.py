from shared.helper.HelperConfig import HelperConfig
from shared.models.access import OwnerScope
from shared.models.content import Chunk, ContentItem, ItemStatus
from shared.models.search import SearchFilters
from shared.stores.ContentStoreInterface import ContentStoreInterface


class ContentStoreMemory(ContentStoreInterface):
    """Dict-backed content store. Used in tests and single-process deployments."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._items: dict[str, ContentItem] = {}
        self._chunks: dict[str, dict[int, Chunk]] = {}

    def _get_engine_name(self) -> str:
        return "Memory"

    ##########################################
    ################ ITEMS ###################
    ##########################################

    async def create_item(self, item: ContentItem) -> None:
        if item.id in self._items:
            raise ValueError(f"Item {item.id} already exists.")
        self._items[item.id] = item.model_copy(deep=True)
        self._chunks[item.id] = {}

    async def get_item(self, item_id: str) -> ContentItem | None:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def get_items(self, item_ids: list[str]) -> dict[str, ContentItem]:
        return {
            item_id: self._items[item_id].model_copy(deep=True)
            for item_id in item_ids
            if item_id in self._items
        }

    async def mark_item_complete(self, item_id: str, chunk_count: int) -> None:
        item = self._items.get(item_id)
        if item is None:
            raise KeyError(item_id)
        self._items[item_id] = item.model_copy(update={"status": ItemStatus.COMPLETE, "chunk_count": chunk_count})

    async def delete_item(self, item_id: str) -> bool:
        self._chunks.pop(item_id, None)
        return self._items.pop(item_id, None) is not None

    async def find_items(self, owner_scope: OwnerScope, filters: SearchFilters | None = None) -> list[ContentItem]:
        return [
            item.model_copy(deep=True)
            for item in self._items.values()
            if item.is_complete() and owner_scope.touches(item) and (filters is None or filters.matches(item))
        ]

    ##########################################
    ################ CHUNKS ##################
    ##########################################

    async def add_chunk(self, chunk: Chunk) -> None:
        if chunk.item_id not in self._items:
            raise KeyError(chunk.item_id)
        self._chunks.setdefault(chunk.item_id, {})[chunk.index] = chunk.model_copy(deep=True)

    async def list_chunks(self, item_id: str) -> list[Chunk]:
        chunks = self._chunks.get(item_id, {})
        return [chunks[index].model_copy(deep=True) for index in sorted(chunks)]

    async def find_candidate_chunks(self, owner_scope: OwnerScope, filters: SearchFilters | None = None) -> list[Chunk]:
        candidates: list[Chunk] = []
        for item_id, chunks in self._chunks.items():
            item = self._items.get(item_id)
            if item is None or not item.is_complete():
                continue
            for chunk in chunks.values():
                if owner_scope.touches(chunk.metadata) and (filters is None or filters.matches(chunk.metadata)):
                    candidates.append(chunk)
        return candidates
