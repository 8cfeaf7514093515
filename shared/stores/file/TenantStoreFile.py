import json
from pathlib import Path

from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Admin, Assignment, Client, ClientOrganization, Coach
from shared.stores.memory.TenantStoreMemory import TenantStoreMemory


class TenantStoreFile(TenantStoreMemory):
    """Tenant graph persisted as a single JSON document.

    The whole graph is held in memory and rewritten after every mutation.
    Path: $DIRECTORY_FILE_DIR/tenants.json
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        data_dir = Path(helper_config.get_string_val("DIRECTORY_FILE_DIR", default="data"))
        self.path = data_dir / "tenants.json"
        self._load()

    def _get_engine_name(self) -> str:
        return "File"

    def _load(self) -> None:
        if not self.path.exists():
            return
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self._coaches = {c["id"]: Coach.model_validate(c) for c in raw.get("coaches", [])}
        self._clients = {c["id"]: Client.model_validate(c) for c in raw.get("clients", [])}
        self._admins = {a["id"]: Admin.model_validate(a) for a in raw.get("admins", [])}
        self._organizations = {o["id"]: ClientOrganization.model_validate(o) for o in raw.get("organizations", [])}
        assignments = [Assignment.model_validate(a) for a in raw.get("assignments", [])]
        self._assignments = {(a.coach_id, a.client_id): a for a in assignments}
        self.logging.debug("Loaded tenant graph from %s.", self.path)

    def _changed(self) -> None:
        data = {
            "coaches": [c.model_dump(mode="json") for c in self._coaches.values()],
            "clients": [c.model_dump(mode="json") for c in self._clients.values()],
            "admins": [a.model_dump(mode="json") for a in self._admins.values()],
            "organizations": [o.model_dump(mode="json") for o in self._organizations.values()],
            "assignments": [a.model_dump(mode="json") for a in self._assignments.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
