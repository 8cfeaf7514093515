from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientRequestError(Exception):
    """A backend answered a raise_on_error request with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClientInterface(ABC):
    """Base for the outbound HTTP clients (embedding providers, vector database).

    Settings live under <TYPE>_<ENGINE>_<KEY>, e.g. EMBED_OLLAMA_BASE_URL or
    RAG_QDRANT_API_KEY. They are read once at construction from
    _get_required_config(), so a missing required value fails before boot.
    The httpx client itself is only opened by boot().
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None
        self.settings: dict[str, Any] = {
            config.env_key: self.get_config_val(config.env_key, default=config.default, val_type=config.val_type)
            for config in self._get_required_config()
        }

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """"embed" or "rag"; the first part of every setting name."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings the engine reads. An entry with default None is mandatory."""
        pass

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read <TYPE>_<ENGINE>_<raw_key> with the HelperConfig getter matching val_type.

        Raises:
            ValueError: If the value is missing without default, malformed, or val_type is unknown.
        """
        key = f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()
        getters = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in getters:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{key}'.")
        return getters[val_type](key, default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers that authenticate against the backend; empty when no key is configured."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP client. Tests pass an httpx.MockTransport."""
        self._client = httpx.AsyncClient(
            base_url=self._get_base_url().rstrip("/"),
            headers=self._get_auth_header(),
            timeout=self.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send a request relative to the backend base URL.

        Raises:
            RuntimeError: If boot() has not been called.
            ClientRequestError: If raise_on_error is set and the status is not 2xx.
            httpx.HTTPError: On transport failures such as timeouts.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        path = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        response = await self._client.request(method, path, json=json, params=params)

        if raise_on_error and not response.is_success:
            self.logging.error(f"{method} {path} on {self.get_engine_name()} failed with status {response.status_code}: {response.text[:200]}")
            raise ClientRequestError(
                f"{method} {path} on {self.get_engine_name()} failed with status {response.status_code}",
                status_code=response.status_code,
            )
        return response
