from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.models.config import EnvConfig


class EmbedClientOpenai(EmbedClientInterface):
    """OpenAI-compatible /v1/embeddings backend such as OpenAI, LiteLLM or vLLM."""

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    def _get_default_model(self) -> str:
        return "text-embedding-3-small"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None)
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self.settings['API_KEY']}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self.settings["BASE_URL"]

    def _get_endpoint_healthcheck(self) -> str:
        return "/v1/models"

    def get_endpoint_embedding(self) -> str:
        return "/v1/embeddings"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": [text.strip() for text in texts]}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from an OpenAI-compatible response, sorted by index.

        Raises:
            ValueError: If the response does not contain valid embeddings.
        """
        data = response_data.get("data")
        if not data:
            raise ValueError(
                "Embedding response does not contain data. "
                f"Response keys: {list(response_data.keys())}"
            )
        ordered = sorted(data, key=lambda entry: entry.get("index", 0))
        embeddings = [entry.get("embedding") for entry in ordered]
        if any(not embedding for embedding in embeddings):
            raise ValueError("Embedding response contains an empty vector.")
        return embeddings
