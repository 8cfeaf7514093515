import json
from pathlib import Path

from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Credential
from shared.stores.memory.CredentialStoreMemory import CredentialStoreMemory


class CredentialStoreFile(CredentialStoreMemory):
    """Credentials persisted as JSON at $DIRECTORY_FILE_DIR/credentials.json. Only hashes are written."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        data_dir = Path(helper_config.get_string_val("DIRECTORY_FILE_DIR", default="data"))
        self.path = data_dir / "credentials.json"
        self._load()

    def _get_engine_name(self) -> str:
        return "File"

    def _load(self) -> None:
        if not self.path.exists():
            return
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        for entry in raw.get("credentials", []):
            credential = Credential.model_validate(entry)
            self._credentials[credential.id] = credential
            self._index(credential)
        self.logging.debug("Loaded %d credentials from %s.", len(self._credentials), self.path)

    def _changed(self) -> None:
        data = {"credentials": [c.model_dump(mode="json") for c in self._credentials.values()]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
