from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Admin, Assignment, Client, ClientOrganization, Coach, Role


class TenantStoreInterface(ABC):
    """The tenant graph: companies' coaches and admins, client organisations, clients and coach assignments."""

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

    ##########################################
    ############## IDENTITIES ################
    ##########################################

    @abstractmethod
    async def add_coach(self, coach: Coach) -> None:
        pass

    @abstractmethod
    async def add_client(self, client: Client) -> None:
        pass

    @abstractmethod
    async def add_admin(self, admin: Admin) -> None:
        pass

    @abstractmethod
    async def add_organization(self, organization: ClientOrganization) -> None:
        pass

    @abstractmethod
    async def get_coach(self, coach_id: str) -> Coach | None:
        pass

    @abstractmethod
    async def get_client(self, client_id: str) -> Client | None:
        pass

    @abstractmethod
    async def get_admin(self, admin_id: str) -> Admin | None:
        pass

    @abstractmethod
    async def get_organization(self, organization_id: str) -> ClientOrganization | None:
        pass

    async def get_identity(self, role: Role, identity_id: str) -> Coach | Client | Admin | None:
        """Resolve an identity by role and id, or None if unknown."""
        if role == Role.COACH:
            return await self.get_coach(identity_id)
        if role == Role.CLIENT:
            return await self.get_client(identity_id)
        if role == Role.ADMIN:
            return await self.get_admin(identity_id)
        return None

    @abstractmethod
    async def list_coaches(self, company_id: str) -> list[Coach]:
        pass

    @abstractmethod
    async def list_organizations(self, company_id: str) -> list[ClientOrganization]:
        """Client organisations tied to the given coaching company."""
        pass

    @abstractmethod
    async def list_clients(self, organization_ids: list[str]) -> list[Client]:
        """Clients belonging to any of the given organisations."""
        pass

    ##########################################
    ############## ASSIGNMENTS ###############
    ##########################################

    @abstractmethod
    async def add_assignment(self, assignment: Assignment) -> bool:
        """
        Returns:
            bool: False if the coach was already assigned to the client.
        """
        pass

    @abstractmethod
    async def remove_assignment(self, coach_id: str, client_id: str) -> bool:
        """
        Returns:
            bool: True if an assignment was removed.
        """
        pass

    @abstractmethod
    async def list_assignments(self, coach_ids: list[str] | None = None) -> list[Assignment]:
        pass

    async def get_assigned_client_ids(self, coach_id: str) -> set[str]:
        return {assignment.client_id for assignment in await self.list_assignments([coach_id])}
