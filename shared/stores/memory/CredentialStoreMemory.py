from datetime import datetime

from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Credential
from shared.stores.CredentialStoreInterface import CredentialStoreInterface


class CredentialStoreMemory(CredentialStoreInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._credentials: dict[str, Credential] = {}
        # prefix -> credential ids
        self._by_prefix: dict[str, set[str]] = {}

    def _get_engine_name(self) -> str:
        return "Memory"

    def _changed(self) -> None:
        """Hook called after every mutation."""
        return None

    def _index(self, credential: Credential) -> None:
        self._by_prefix.setdefault(credential.key_prefix, set()).add(credential.id)

    async def add_credential(self, credential: Credential) -> None:
        if credential.id in self._credentials:
            raise ValueError(f"Credential {credential.id} already exists.")
        self._credentials[credential.id] = credential
        self._index(credential)
        self._changed()

    async def get_credential(self, credential_id: str) -> Credential | None:
        return self._credentials.get(credential_id)

    async def find_by_prefix(self, key_prefix: str) -> list[Credential]:
        return [self._credentials[cid] for cid in sorted(self._by_prefix.get(key_prefix, ()))]

    async def update_credential(self, credential: Credential) -> None:
        if credential.id not in self._credentials:
            raise KeyError(credential.id)
        self._credentials[credential.id] = credential
        self._changed()

    async def touch_last_used(self, credential_id: str, when: datetime) -> None:
        current = self._credentials.get(credential_id)
        if current is None:
            return
        self._credentials[credential_id] = current.model_copy(update={"last_used_at": when})
        self._changed()

    async def mark_revoked(self, credential_id: str) -> Credential | None:
        current = self._credentials.get(credential_id)
        if current is None:
            return None
        revoked = current.model_copy(update={"revoked": True})
        self._credentials[credential_id] = revoked
        self._changed()
        return revoked

    async def list_credentials(self) -> list[Credential]:
        return sorted(self._credentials.values(), key=lambda c: c.created_at)
