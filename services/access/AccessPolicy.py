"""Authorization predicate for every read and write of coaching content.

The rules are compiled once per identity into an AccessScope made of grants.
Single-item reads call scope.admits(item); searches hand scope.owner_scope to
the content store as a pre-filter and then call scope.admits(chunk.metadata)
on every candidate. Both paths share the same grants.
"""

from shared.errors import AuthorizationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.access import ALL_VISIBILITY_LEVELS, AccessGrant, AccessScope, OwnerScope
from shared.models.content import ContentItem, VisibilityLevel
from shared.models.identity import Admin, Client, Coach, Principal, Scope
from shared.stores.TenantStoreInterface import TenantStoreInterface

# what a coach may see of an assigned client's content
ASSIGNED_CLIENT_VISIBILITY = frozenset({
    VisibilityLevel.COACH_ONLY,
    VisibilityLevel.ORG_VISIBLE,
    VisibilityLevel.PUBLIC,
})

# what a client may see of their own content
OWN_CLIENT_VISIBILITY = frozenset({
    VisibilityLevel.PRIVATE,
    VisibilityLevel.ORG_VISIBLE,
    VisibilityLevel.PUBLIC,
})


class AccessPolicy:
    def __init__(self, helper_config: HelperConfig, tenant_store: TenantStoreInterface) -> None:
        self.logging = helper_config.get_logger()
        self._tenants = tenant_store

    ##########################################
    ############### COMPILING ################
    ##########################################

    async def scope_for(self, identity: Coach | Client | Admin) -> AccessScope:
        """Compile the read rules of an identity into grants.

        Args:
            identity: The verified caller.

        Returns:
            AccessScope: Grants for the identity; empty for unknown identity kinds.
        """
        if isinstance(identity, Admin):
            return await self._admin_scope(identity)
        if isinstance(identity, Coach):
            assigned = await self._tenants.get_assigned_client_ids(identity.id)
            grants = [AccessGrant(owner_field="owner_coach_id", ids=frozenset({identity.id}))]
            if assigned:
                grants.append(AccessGrant(
                    owner_field="owner_client_id",
                    ids=frozenset(assigned),
                    visibility_levels=ASSIGNED_CLIENT_VISIBILITY,
                ))
            return AccessScope(grants=grants)
        if isinstance(identity, Client):
            return AccessScope(grants=[AccessGrant(
                owner_field="owner_client_id",
                ids=frozenset({identity.id}),
                visibility_levels=OWN_CLIENT_VISIBILITY,
            )])
        return AccessScope()

    async def _admin_scope(self, admin: Admin) -> AccessScope:
        coach_ids = {coach.id for coach in await self._tenants.list_coaches(admin.company_id)}
        organization_ids = {org.id for org in await self._tenants.list_organizations(admin.company_id)}
        client_ids = {client.id for client in await self._tenants.list_clients(sorted(organization_ids))}
        if coach_ids:
            assignments = await self._tenants.list_assignments(sorted(coach_ids))
            client_ids.update(assignment.client_id for assignment in assignments)
        # company-level documents carry the company id as organization_id
        organization_ids.add(admin.company_id)

        grants = [AccessGrant(owner_field="organization_id", ids=frozenset(organization_ids), visibility_levels=ALL_VISIBILITY_LEVELS)]
        if coach_ids:
            grants.append(AccessGrant(owner_field="owner_coach_id", ids=frozenset(coach_ids)))
        if client_ids:
            grants.append(AccessGrant(owner_field="owner_client_id", ids=frozenset(client_ids)))
        return AccessScope(grants=grants)

    ##########################################
    ################ CHECKS ##################
    ##########################################

    async def can_read(self, identity: Coach | Client | Admin, item: ContentItem) -> bool:
        return (await self.scope_for(identity)).admits(item)

    async def visible_owner_scope(self, identity: Coach | Client | Admin) -> OwnerScope:
        """Owner ids the identity could possibly read, for narrowing candidate sets."""
        return (await self.scope_for(identity)).owner_scope

    async def can_access_client(self, identity: Coach | Client | Admin, client_id: str) -> bool:
        """True if the identity may look at a client's history at all."""
        if isinstance(identity, Client):
            return identity.id == client_id
        if isinstance(identity, Coach):
            return client_id in await self._tenants.get_assigned_client_ids(identity.id)
        if isinstance(identity, Admin):
            return client_id in (await self.scope_for(identity)).owner_scope.client_ids
        return False

    async def authorize_write(self, principal: Principal, item: ContentItem) -> None:
        """Check that the caller may create the given item.

        Nobody can write what they could not read. A coach may not file content
        under another coach's name, nor for a client they are not assigned to.

        Raises:
            AuthorizationError: If the write is not permitted.
        """
        principal.require_scope(Scope.WRITE)
        identity = principal.identity
        if isinstance(identity, Coach):
            if item.owner_coach_id not in (None, identity.id):
                raise AuthorizationError("Coaches can only create content they own.")
            if item.owner_client_id is not None and not await self.can_access_client(identity, item.owner_client_id):
                raise AuthorizationError("Coaches can only create content for assigned clients.")
        if not await self.can_read(identity, item):
            self.logging.warning(
                "Rejected write of %s by %s '%s'.", item.content_type.value, identity.role, identity.id
            )
            raise AuthorizationError("Not permitted to create content for these owners.")

    async def can_delete(self, identity: Coach | Client | Admin, item: ContentItem) -> bool:
        """True if the identity may delete an item it can already read.

        Only the owning coach or an admin may delete. Callers check can_read
        first, which limits admins to their own company.
        """
        if isinstance(identity, Admin):
            return True
        return isinstance(identity, Coach) and item.owner_coach_id == identity.id
