from abc import abstractmethod

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ProviderError
from shared.helper.HelperConfig import HelperConfig

# rate limiting and server-side trouble
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class EmbedClientInterface(ClientInterface):
    """Base class for embedding providers.

    A backend supplies the endpoint, the request body and the response parser.
    do_embed() turns every failure into a ProviderError whose retryable flag
    drives the RetryPolicy used by ingestion and search.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.embed_model = helper_config.get_string_val("EMBED_MODEL", default=self._get_default_model())
        self.embed_dimension = helper_config.get_int_val("EMBED_DIMENSION", default=1536, minimum=1)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_client_type(self) -> str:
        return "embed"

    def get_dimension(self) -> int:
        return self.embed_dimension

    @abstractmethod
    def _get_default_model(self) -> str:
        """Model used when EMBED_MODEL is not set."""
        pass

    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        pass

    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the provider request body for a batch of texts."""
        pass

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Return the vectors of a parsed response in input order.

        Raises:
            ValueError: If the body holds no usable vectors.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Embed one or more texts.

        Args:
            texts (list[str] | str): A single text or a batch.

        Returns:
            list[list[float]]: One vector per input, in input order.

        Raises:
            ProviderError: Transport failures, 408, 429 and 5xx are retryable.
                Other statuses, malformed bodies and count mismatches are not.
        """
        texts = [texts] if isinstance(texts, str) else texts
        try:
            response = await self.do_request(
                method="POST", endpoint=self.get_endpoint_embedding(), json=self.get_embed_payload(texts)
            )
        except httpx.HTTPError as exc:
            self.logging.warning(f"Embedding request to {self.get_engine_name()} failed: {exc!r}")
            raise ProviderError(f"Embedding request failed: {exc.__class__.__name__}", retryable=True) from exc

        if response.status_code != 200:
            self.logging.error(f"Embedding request failed with status {response.status_code}: {response.text[:200]}")
            raise ProviderError(
                f"Embedding request failed with status {response.status_code}.",
                retryable=response.status_code in RETRYABLE_STATUS_CODES,
            )

        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except ValueError as exc:
            raise ProviderError(str(exc), retryable=False) from exc
        if len(vectors) != len(texts):
            raise ProviderError(
                f"Embedding backend returned {len(vectors)} vectors for {len(texts)} inputs.", retryable=False
            )
        return vectors
