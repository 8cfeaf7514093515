from typing import Literal

from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single environment setting a client engine needs before it can boot.

    Attributes:
        env_key (str): Key relative to the client prefix, e.g. "BASE_URL" for "EMBED_OLLAMA_BASE_URL".
        val_type (str): How to parse the value: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Fallback value. None marks the setting as required.
    """

    env_key: str
    val_type: Literal["string", "number", "bool", "list"] = "string"
    default: str | int | float | bool | list | None = None
