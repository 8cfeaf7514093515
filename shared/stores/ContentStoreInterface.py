from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig
from shared.models.access import OwnerScope
from shared.models.content import Chunk, ContentItem
from shared.models.search import SearchFilters


class ContentStoreInterface(ABC):
    """Persistence for content items and their chunks.

    Candidate queries only narrow by owner scope and filters. The caller
    re-applies the full read predicate, so an engine may over-fetch but must
    never return chunks or items that are not complete.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        """
        Returns the name of the storage engine in lowercase. E.g. "qdrant"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        """Open connections and create missing collections. No-op by default."""
        return None

    async def close(self) -> None:
        """Release connections. No-op by default."""
        return None

    ##########################################
    ################ ITEMS ###################
    ##########################################

    @abstractmethod
    async def create_item(self, item: ContentItem) -> None:
        """Persist a new item (normally in status pending_chunks)."""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> ContentItem | None:
        """
        Returns the item regardless of its status, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def get_items(self, item_ids: list[str]) -> dict[str, ContentItem]:
        """
        Batch lookup used to enrich search results. Missing ids are absent from the result.
        """
        pass

    @abstractmethod
    async def mark_item_complete(self, item_id: str, chunk_count: int) -> None:
        """Flip an item to complete once every one of its chunks is stored."""
        pass

    @abstractmethod
    async def delete_item(self, item_id: str) -> bool:
        """
        Delete an item and all of its chunks.

        Returns:
            bool: True if the item existed.
        """
        pass

    @abstractmethod
    async def find_items(self, owner_scope: OwnerScope, filters: SearchFilters | None = None) -> list[ContentItem]:
        """
        Returns complete items touching the owner scope and matching the filters.
        """
        pass

    ##########################################
    ################ CHUNKS ##################
    ##########################################

    @abstractmethod
    async def add_chunk(self, chunk: Chunk) -> None:
        """Persist one embedded chunk. Writing the same chunk id twice overwrites."""
        pass

    @abstractmethod
    async def list_chunks(self, item_id: str) -> list[Chunk]:
        """
        Returns the chunks of an item ordered by index, regardless of item status.
        """
        pass

    @abstractmethod
    async def find_candidate_chunks(self, owner_scope: OwnerScope, filters: SearchFilters | None = None) -> list[Chunk]:
        """
        Returns chunks of complete items touching the owner scope and matching the filters.
        """
        pass
