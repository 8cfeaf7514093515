from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.Scroll import ScrollPage
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_prefix(self) -> str:
        return self.settings["COLLECTION"]

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="coaching"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"api-key": self.settings["API_KEY"]} if self.settings["API_KEY"] else {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.settings["BASE_URL"]

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collection(self, collection: str) -> str:
        return f"/collections/{collection}"

    def _get_endpoint_collection_exists(self, collection: str) -> str:
        return f"/collections/{collection}/exists"

    def _get_endpoint_points(self, collection: str) -> str:
        return f"/collections/{collection}/points"

    def _get_endpoint_points_action(self, collection: str, action: str) -> str:
        return f"/collections/{collection}/points/{action}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_scroll_payload(self, query_filter: dict | None, with_vector: bool, offset: str | int | None) -> dict:
        body = {"limit": self.scroll_page_size, "with_payload": True, "with_vector": with_vector}
        if query_filter:
            body["filter"] = query_filter
        if offset is not None:
            body["offset"] = offset
        return body

    def get_selector_payload(self, point_ids: list[str] | None, query_filter: dict | None) -> dict:
        if point_ids is not None:
            return {"points": point_ids}
        if query_filter:
            return {"filter": query_filter}
        raise ValueError("Refusing to select points without ids or a filter.")

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_scroll_page(self, raw_response: dict) -> ScrollPage:
        result = raw_response.get("result") or {}
        return ScrollPage(points=result.get("points") or [], next_page_offset=result.get("next_page_offset"))

    def extract_points(self, raw_response: dict) -> list[dict]:
        return raw_response.get("result") or []
