from abc import abstractmethod
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.Scroll import ScrollPage
from shared.helper.HelperConfig import HelperConfig


class RAGClientInterface(ClientInterface):
    """REST template for vector backends.

    The content store keeps items and chunks in two collections, so every call
    names its collection. Writes wait for the backend to apply them, which
    makes a completed ingestion visible to the very next search.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.scroll_page_size = helper_config.get_int_val("RAG_SCROLL_PAGE_SIZE", default=256, minimum=1)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_client_type(self) -> str:
        return "rag"

    @abstractmethod
    def get_collection_prefix(self) -> str:
        """Prefix for the collection names of this deployment, e.g. "coaching"."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collection(self, collection: str) -> str:
        pass

    @abstractmethod
    def _get_endpoint_collection_exists(self, collection: str) -> str:
        pass

    @abstractmethod
    def _get_endpoint_points(self, collection: str) -> str:
        """Upsert (PUT) and fetch by id (POST)."""
        pass

    @abstractmethod
    def _get_endpoint_points_action(self, collection: str, action: str) -> str:
        """Point sub-resources: "scroll", "delete" and "payload"."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_scroll_payload(self, query_filter: dict | None, with_vector: bool, offset: str | int | None) -> dict:
        pass

    @abstractmethod
    def get_selector_payload(self, point_ids: list[str] | None, query_filter: dict | None) -> dict:
        """Select points by id or by filter, for deletes and payload updates.

        Raises:
            ValueError: If neither ids nor a filter are given. An empty selector
                would touch the whole collection.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_scroll_page(self, raw_response: dict) -> ScrollPage:
        pass

    @abstractmethod
    def extract_points(self, raw_response: dict) -> list[dict]:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _send(self, method: str, endpoint: str, body: dict, wait: bool = False) -> httpx.Response:
        return await self.do_request(
            method=method,
            endpoint=endpoint,
            json=body,
            params={"wait": "true"} if wait else None,
            raise_on_error=True,
        )

    async def do_existence_check(self, collection: str) -> bool:
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collection_exists(collection), raise_on_error=True)
        return bool(resp.json().get("result", {}).get("exists"))

    async def do_create_collection(self, collection: str, vector_size: int, distance: str = "Cosine") -> None:
        self.logging.info(f"Creating {self.get_engine_name()} collection '{collection}' (size={vector_size}, distance={distance}).")
        await self._send("PUT", self._get_endpoint_collection(collection), {"vectors": {"size": vector_size, "distance": distance}})

    async def do_upsert_points(self, collection: str, points: list[dict[str, Any]]) -> None:
        """Insert points, replacing any with the same id."""
        await self._send("PUT", self._get_endpoint_points(collection), {"points": points}, wait=True)

    async def do_retrieve_points(self, collection: str, point_ids: list[str], with_payload: bool = True, with_vector: bool = False) -> list[dict]:
        """Fetch points by id. Unknown ids are absent from the result."""
        if not point_ids:
            return []
        body = {"ids": point_ids, "with_payload": with_payload, "with_vector": with_vector}
        resp = await self._send("POST", self._get_endpoint_points(collection), body)
        return self.extract_points(resp.json())

    async def do_set_payload(self, collection: str, payload: dict, point_ids: list[str] | None = None, query_filter: dict | None = None) -> None:
        """Merge payload fields into the selected points."""
        body = {"payload": payload, **self.get_selector_payload(point_ids, query_filter)}
        await self._send("POST", self._get_endpoint_points_action(collection, "payload"), body, wait=True)

    async def do_delete_points(self, collection: str, point_ids: list[str] | None = None, query_filter: dict | None = None) -> None:
        body = self.get_selector_payload(point_ids, query_filter)
        await self._send("POST", self._get_endpoint_points_action(collection, "delete"), body, wait=True)

    async def do_scroll_all(self, collection: str, query_filter: dict | None, with_vector: bool = False) -> list[dict]:
        """Collect every point matching the filter, following the page cursor.

        Returns:
            list[dict]: Raw points with payload, and with vector if requested.
        """
        points: list[dict] = []
        offset: str | int | None = None
        while True:
            resp = await self._send(
                "POST", self._get_endpoint_points_action(collection, "scroll"),
                self.get_scroll_payload(query_filter, with_vector, offset),
            )
            page = self.extract_scroll_page(resp.json())
            points.extend(page.points)
            if page.next_page_offset is None:
                break
            offset = page.next_page_offset
        self.logging.debug(f"Scrolled {len(points)} points from {self.get_engine_name()}/{collection}")
        return points
