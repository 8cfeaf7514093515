"""Administrative provisioning: directory entries, coach assignments and API credentials.

Every operation needs an Admin identity holding the admin scope, and only
touches entities of that admin's coaching company. Anything outside the
company is reported as not found.
"""

import asyncio
import uuid
from datetime import datetime

from services.access.AccessPolicy import AccessPolicy
from services.auth.CredentialVerifier import CredentialVerifier, generate_api_key, hash_api_key, key_prefix
from shared.errors import AuthorizationError, NotFoundError, ValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import (
    Admin,
    Assignment,
    Client,
    ClientOrganization,
    Coach,
    Credential,
    IssuedCredential,
    Principal,
    Role,
    Scope,
)
from shared.stores.CredentialStoreInterface import CredentialStoreInterface
from shared.stores.TenantStoreInterface import TenantStoreInterface


class ProvisioningService:
    def __init__(
        self,
        helper_config: HelperConfig,
        tenant_store: TenantStoreInterface,
        credential_store: CredentialStoreInterface,
        access_policy: AccessPolicy,
        verifier: CredentialVerifier,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._tenants = tenant_store
        self._credentials = credential_store
        self._policy = access_policy
        self._verifier = verifier
        self.key_environment = helper_config.get_string_val("API_KEY_ENVIRONMENT", default="live")

    ##########################################
    ################ GUARDS ##################
    ##########################################

    @staticmethod
    def _require_admin(principal: Principal) -> Admin:
        principal.require_scope(Scope.ADMIN)
        if not isinstance(principal.identity, Admin):
            raise AuthorizationError("Administrative operations require an admin identity.")
        return principal.identity

    async def _company_coach(self, admin: Admin, coach_id: str) -> Coach:
        coach = await self._tenants.get_coach(coach_id)
        if coach is None or coach.company_id != admin.company_id:
            raise NotFoundError(f"Coach '{coach_id}' not found.")
        return coach

    async def _company_client(self, admin: Admin, client_id: str, allow_unaffiliated: bool = False) -> Client:
        client = await self._tenants.get_client(client_id)
        if client is not None:
            organization = await self._tenants.get_organization(client.organization_id)
            company_id = organization.company_id if organization else None
            if company_id == admin.company_id:
                return client
            if allow_unaffiliated and company_id is None:
                return client
            if client_id in (await self._policy.visible_owner_scope(admin)).client_ids:
                return client
        raise NotFoundError(f"Client '{client_id}' not found.")

    async def _owned_by_company(self, admin: Admin, credential: Credential) -> bool:
        role, owner_id = credential.owner()
        try:
            if role == Role.COACH:
                await self._company_coach(admin, owner_id)
            elif role == Role.CLIENT:
                await self._company_client(admin, owner_id)
            else:
                owner = await self._tenants.get_admin(owner_id)
                return owner is not None and owner.company_id == admin.company_id
        except NotFoundError:
            return False
        return True

    ##########################################
    ############### DIRECTORY ################
    ##########################################

    async def register_coach(self, principal: Principal, coach_id: str, name: str, email: str | None = None) -> Coach:
        admin = self._require_admin(principal)
        if await self._tenants.get_coach(coach_id) is not None:
            raise ValidationError(f"Coach '{coach_id}' already exists.")
        coach = Coach(id=coach_id, name=name, company_id=admin.company_id, email=email)
        await self._tenants.add_coach(coach)
        self.logging.info("Admin %s registered coach %s.", admin.id, coach_id)
        return coach

    async def register_organization(self, principal: Principal, organization_id: str, name: str) -> ClientOrganization:
        admin = self._require_admin(principal)
        if await self._tenants.get_organization(organization_id) is not None:
            raise ValidationError(f"Organization '{organization_id}' already exists.")
        organization = ClientOrganization(id=organization_id, name=name, company_id=admin.company_id)
        await self._tenants.add_organization(organization)
        self.logging.info("Admin %s registered organization %s.", admin.id, organization_id)
        return organization

    async def register_client(self, principal: Principal, client_id: str, name: str, organization_id: str, email: str | None = None) -> Client:
        admin = self._require_admin(principal)
        organization = await self._tenants.get_organization(organization_id)
        if organization is None or organization.company_id != admin.company_id:
            raise NotFoundError(f"Organization '{organization_id}' not found.")
        if await self._tenants.get_client(client_id) is not None:
            raise ValidationError(f"Client '{client_id}' already exists.")
        client = Client(id=client_id, name=name, organization_id=organization_id, email=email)
        await self._tenants.add_client(client)
        self.logging.info("Admin %s registered client %s.", admin.id, client_id)
        return client

    ##########################################
    ############## ASSIGNMENTS ###############
    ##########################################

    async def assign_client(self, principal: Principal, coach_id: str, client_id: str) -> Assignment:
        """Give a coach access to a client's data. Assigning twice is a no-op.

        Raises:
            NotFoundError: Coach or client outside the admin's company.
        """
        admin = self._require_admin(principal)
        await self._company_coach(admin, coach_id)
        await self._company_client(admin, client_id, allow_unaffiliated=True)
        assignment = Assignment(coach_id=coach_id, client_id=client_id, created_by=admin.id)
        if not await self._tenants.add_assignment(assignment):
            existing = [a for a in await self._tenants.list_assignments([coach_id]) if a.client_id == client_id]
            return existing[0]
        self.logging.info("Admin %s assigned client %s to coach %s.", admin.id, client_id, coach_id)
        return assignment

    async def unassign_client(self, principal: Principal, coach_id: str, client_id: str) -> None:
        admin = self._require_admin(principal)
        await self._company_coach(admin, coach_id)
        if not await self._tenants.remove_assignment(coach_id, client_id):
            raise NotFoundError(f"Coach '{coach_id}' is not assigned to client '{client_id}'.")
        self.logging.info("Admin %s removed client %s from coach %s.", admin.id, client_id, coach_id)

    async def list_assignments(self, principal: Principal, coach_id: str | None = None) -> list[Assignment]:
        admin = self._require_admin(principal)
        if coach_id is not None:
            await self._company_coach(admin, coach_id)
            return await self._tenants.list_assignments([coach_id])
        coach_ids = [coach.id for coach in await self._tenants.list_coaches(admin.company_id)]
        if not coach_ids:
            return []
        return await self._tenants.list_assignments(coach_ids)

    ##########################################
    ############## CREDENTIALS ###############
    ##########################################

    async def issue_credential(
        self,
        principal: Principal,
        role: Role,
        owner_id: str,
        scopes: list[Scope] | None = None,
        expires_at: datetime | None = None,
        name: str | None = None,
    ) -> IssuedCredential:
        """Create an API key for a coach, client or admin of the company.

        Returns:
            IssuedCredential: The plaintext token (shown once) and the stored credential.

        Raises:
            NotFoundError: Owner outside the admin's company.
            ValidationError: No scopes, or the admin scope requested for a non-admin.
        """
        admin = self._require_admin(principal)
        scopes = list(dict.fromkeys(scopes or [Scope.READ]))
        if not scopes:
            raise ValidationError("A credential needs at least one scope.")
        if Scope.ADMIN in scopes and role != Role.ADMIN:
            raise ValidationError("The admin scope can only be granted to admin credentials.")

        if role == Role.COACH:
            await self._company_coach(admin, owner_id)
        elif role == Role.CLIENT:
            await self._company_client(admin, owner_id, allow_unaffiliated=True)
        else:
            owner = await self._tenants.get_admin(owner_id)
            if owner is None or owner.company_id != admin.company_id:
                raise NotFoundError(f"Admin '{owner_id}' not found.")

        token = generate_api_key(self.key_environment)
        key_hash = await asyncio.to_thread(hash_api_key, token, self._verifier.bcrypt_rounds)
        credential = Credential(
            id=str(uuid.uuid4()),
            name=name or f"{role.value}:{owner_id}",
            key_prefix=key_prefix(token),
            key_hash=key_hash,
            coach_id=owner_id if role == Role.COACH else None,
            client_id=owner_id if role == Role.CLIENT else None,
            admin_id=owner_id if role == Role.ADMIN else None,
            scopes=scopes,
            expires_at=expires_at,
        )
        await self._credentials.add_credential(credential)
        self.logging.info("Admin %s issued credential %s for %s %s.", admin.id, credential.id, role.value, owner_id)
        return IssuedCredential(token=token, credential=credential)

    async def revoke_credential(self, principal: Principal, credential_id: str) -> Credential:
        admin = self._require_admin(principal)
        credential = await self._credentials.get_credential(credential_id)
        if credential is None or not await self._owned_by_company(admin, credential):
            raise NotFoundError(f"Credential '{credential_id}' not found.")
        revoked = await self._credentials.mark_revoked(credential_id)
        if revoked is None:
            raise NotFoundError(f"Credential '{credential_id}' not found.")
        self._verifier.evict(credential_id)
        self.logging.info("Admin %s revoked credential %s.", admin.id, credential_id)
        return revoked

    async def list_credentials(self, principal: Principal) -> list[Credential]:
        admin = self._require_admin(principal)
        return [
            credential for credential in await self._credentials.list_credentials()
            if await self._owned_by_company(admin, credential)
        ]
