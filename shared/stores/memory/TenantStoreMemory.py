from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Admin, Assignment, Client, ClientOrganization, Coach
from shared.stores.TenantStoreInterface import TenantStoreInterface


class TenantStoreMemory(TenantStoreInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._coaches: dict[str, Coach] = {}
        self._clients: dict[str, Client] = {}
        self._admins: dict[str, Admin] = {}
        self._organizations: dict[str, ClientOrganization] = {}
        self._assignments: dict[tuple[str, str], Assignment] = {}

    def _get_engine_name(self) -> str:
        return "Memory"

    def _changed(self) -> None:
        """Hook called after every mutation."""
        return None

    ##########################################
    ############## IDENTITIES ################
    ##########################################

    async def add_coach(self, coach: Coach) -> None:
        self._coaches[coach.id] = coach
        self._changed()

    async def add_client(self, client: Client) -> None:
        self._clients[client.id] = client
        self._changed()

    async def add_admin(self, admin: Admin) -> None:
        self._admins[admin.id] = admin
        self._changed()

    async def add_organization(self, organization: ClientOrganization) -> None:
        self._organizations[organization.id] = organization
        self._changed()

    async def get_coach(self, coach_id: str) -> Coach | None:
        return self._coaches.get(coach_id)

    async def get_client(self, client_id: str) -> Client | None:
        return self._clients.get(client_id)

    async def get_admin(self, admin_id: str) -> Admin | None:
        return self._admins.get(admin_id)

    async def get_organization(self, organization_id: str) -> ClientOrganization | None:
        return self._organizations.get(organization_id)

    async def list_coaches(self, company_id: str) -> list[Coach]:
        return [coach for coach in self._coaches.values() if coach.company_id == company_id]

    async def list_organizations(self, company_id: str) -> list[ClientOrganization]:
        return [org for org in self._organizations.values() if org.company_id == company_id]

    async def list_clients(self, organization_ids: list[str]) -> list[Client]:
        wanted = set(organization_ids)
        return [client for client in self._clients.values() if client.organization_id in wanted]

    ##########################################
    ############## ASSIGNMENTS ###############
    ##########################################

    async def add_assignment(self, assignment: Assignment) -> bool:
        key = (assignment.coach_id, assignment.client_id)
        if key in self._assignments:
            return False
        self._assignments[key] = assignment
        self._changed()
        return True

    async def remove_assignment(self, coach_id: str, client_id: str) -> bool:
        removed = self._assignments.pop((coach_id, client_id), None) is not None
        if removed:
            self._changed()
        return removed

    async def list_assignments(self, coach_ids: list[str] | None = None) -> list[Assignment]:
        if coach_ids is None:
            return list(self._assignments.values())
        wanted = set(coach_ids)
        return [a for a in self._assignments.values() if a.coach_id in wanted]
