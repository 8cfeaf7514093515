"""Bootstrap entry point.

Creates the first admin of a coaching company and issues an API key with
the read, write and admin scopes. The plaintext key is printed once and
never logged.

Usage:
    BOOTSTRAP_ADMIN_ID=... BOOTSTRAP_COMPANY_ID=... python -m services.provisioning.bootstrap_admin
"""

import asyncio

from services.access.AccessPolicy import AccessPolicy
from services.auth.CredentialVerifier import CredentialVerifier
from services.provisioning.ProvisioningService import ProvisioningService
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.identity import Admin, IssuedCredential, Principal, Role, Scope
from shared.stores.StoreManager import StoreManager


async def bootstrap(helper_config: HelperConfig, stores: StoreManager) -> IssuedCredential:
    """Register the configured admin if missing and issue a full-scope key for it.

    Raises:
        ValueError: If BOOTSTRAP_ADMIN_ID or BOOTSTRAP_COMPANY_ID is not set,
            or the admin exists under a different company.
    """
    logging = helper_config.get_logger()
    admin_id = helper_config.get_string_val("BOOTSTRAP_ADMIN_ID")
    company_id = helper_config.get_string_val("BOOTSTRAP_COMPANY_ID")
    name = helper_config.get_string_val("BOOTSTRAP_ADMIN_NAME", default=admin_id)

    admin = await stores.tenant_store.get_admin(admin_id)
    if admin is None:
        admin = Admin(id=admin_id, name=name, company_id=company_id)
        await stores.tenant_store.add_admin(admin)
        logging.info("Registered admin %s for company %s.", admin_id, company_id)
    elif admin.company_id != company_id:
        raise ValueError(f"Admin '{admin_id}' already belongs to company '{admin.company_id}'.")

    policy = AccessPolicy(helper_config=helper_config, tenant_store=stores.tenant_store)
    verifier = CredentialVerifier(
        helper_config=helper_config,
        credential_store=stores.credential_store,
        tenant_store=stores.tenant_store,
    )
    provisioning = ProvisioningService(
        helper_config=helper_config,
        tenant_store=stores.tenant_store,
        credential_store=stores.credential_store,
        access_policy=policy,
        verifier=verifier,
    )
    # no key exists yet, so act as the admin directly
    system_principal = Principal(identity=admin, scopes=frozenset({Scope.ADMIN}))
    return await provisioning.issue_credential(
        system_principal,
        role=Role.ADMIN,
        owner_id=admin.id,
        scopes=[Scope.READ, Scope.WRITE, Scope.ADMIN],
        name="bootstrap",
    )


async def main() -> None:
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    stores = StoreManager(helper_config=config)
    try:
        await stores.boot()
        issued = await bootstrap(config, stores)
        logger.info("Issued bootstrap credential %s.", issued.credential.id)
        print(f"Admin API key (shown once): {issued.token}")
    finally:
        await stores.close()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
