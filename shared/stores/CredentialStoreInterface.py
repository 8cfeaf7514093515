from abc import ABC, abstractmethod
from datetime import datetime

from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Credential


class CredentialStoreInterface(ABC):
    """Stored API credentials, looked up by their plaintext prefix."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    async def boot(self) -> None:
        return None

    async def close(self) -> None:
        return None

    @abstractmethod
    async def add_credential(self, credential: Credential) -> None:
        pass

    @abstractmethod
    async def get_credential(self, credential_id: str) -> Credential | None:
        pass

    @abstractmethod
    async def find_by_prefix(self, key_prefix: str) -> list[Credential]:
        """
        Returns every credential sharing the prefix. Never scans the full table.
        """
        pass

    @abstractmethod
    async def update_credential(self, credential: Credential) -> None:
        """Replace a stored credential. Raises KeyError if it does not exist."""
        pass

    @abstractmethod
    async def touch_last_used(self, credential_id: str, when: datetime) -> None:
        """Set last_used_at only. Other fields written concurrently, such as revoked, are kept."""
        pass

    @abstractmethod
    async def mark_revoked(self, credential_id: str) -> Credential | None:
        """Set revoked only. Returns the updated credential, or None if it does not exist."""
        pass

    @abstractmethod
    async def list_credentials(self) -> list[Credential]:
        pass
