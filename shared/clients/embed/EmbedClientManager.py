from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig

SUPPORTED_EMBED_ENGINES = ("ollama", "openai")


class EmbedClientManager:
    """
    Owns the embedding backend selected by EMBED_ENGINE (ollama | openai).

    The backend class is resolved as shared.clients.embed.<engine>.EmbedClient<Engine>,
    so a new provider only needs its module and an entry in SUPPORTED_EMBED_ENGINES.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.engine = self.helper_config.get_string_val("EMBED_ENGINE", default="openai").lower()
        if self.engine not in SUPPORTED_EMBED_ENGINES:
            raise ValueError(
                f"Unsupported EMBED_ENGINE '{self.engine}', expected one of: {', '.join(SUPPORTED_EMBED_ENGINES)}."
            )
        self.client = self._load_client()

    def _load_client(self) -> EmbedClientInterface:
        class_name = f"EmbedClient{self.engine.capitalize()}"
        module = __import__(f"shared.clients.embed.{self.engine}.{class_name}", fromlist=[class_name])
        client = getattr(module, class_name)(helper_config=self.helper_config)
        self.logging.debug(f"Embedding backend {class_name} loaded, model {client.embed_model}, dimension {client.get_dimension()}")
        return client

    def get_client(self) -> EmbedClientInterface:
        return self.client

    async def boot(self) -> None:
        """Open the HTTP client and probe the provider.

        An unreachable provider is only logged: item lookups, timelines and
        administration keep working, ingestion and search fail per request.
        """
        await self.client.boot()
        try:
            await self.client.do_healthcheck()
        except Exception as e:
            self.logging.warning(f"Embed client {self.client.get_engine_name()} is not reachable: {e}")

    async def close(self) -> None:
        await self.client.close()
