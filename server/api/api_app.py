"""FastAPI application entry point for the coaching AI bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from server.api.errors import register_exception_handlers
from server.api.routers.AdminRouter import admin_router
from server.api.routers.ClientRouter import client_router
from server.api.routers.ContentRouter import content_router
from server.api.routers.SearchRouter import search_router
from server.models.responses import HealthResponse
from services.access.AccessPolicy import AccessPolicy
from services.auth.CredentialVerifier import CredentialVerifier
from services.ingestion.IngestionService import IngestionService
from services.provisioning.ProvisioningService import ProvisioningService
from services.retrieval.RetrievalService import RetrievalService
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.RetryPolicy import RetryPolicy
from shared.logging.logging_setup import setup_logging
from shared.stores.StoreManager import StoreManager

app_version = os.getenv("APP_VERSION", "unknown")


def wire_services(app: FastAPI, helper_config: HelperConfig, stores: StoreManager, embed_client: EmbedClientInterface) -> None:
    """Build the service graph on app.state from already created stores and clients."""
    app.state.helper_config = helper_config
    app.state.stores = stores
    app.state.embed_client = embed_client

    retry_policy = RetryPolicy(helper_config)
    access_policy = AccessPolicy(helper_config=helper_config, tenant_store=stores.tenant_store)
    app.state.access_policy = access_policy
    app.state.verifier = CredentialVerifier(
        helper_config=helper_config,
        credential_store=stores.credential_store,
        tenant_store=stores.tenant_store,
    )
    app.state.ingestion_service = IngestionService(
        helper_config=helper_config,
        content_store=stores.content_store,
        embed_client=embed_client,
        access_policy=access_policy,
        retry_policy=retry_policy,
    )
    app.state.retrieval_service = RetrievalService(
        helper_config=helper_config,
        content_store=stores.content_store,
        embed_client=embed_client,
        access_policy=access_policy,
        retry_policy=retry_policy,
    )
    app.state.provisioning_service = ProvisioningService(
        helper_config=helper_config,
        tenant_store=stores.tenant_store,
        credential_store=stores.credential_store,
        access_policy=access_policy,
        verifier=app.state.verifier,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    # when the app starts
    logging = setup_logging()
    app.state.logging = logging
    helper_config = HelperConfig(logger=logging)

    stores = StoreManager(helper_config=helper_config)
    embed_manager = EmbedClientManager(helper_config=helper_config)

    logging.info("Booting stores and embed client...")
    await stores.boot()
    await embed_manager.boot()

    wire_services(app, helper_config, stores, embed_manager.get_client())
    logging.info("Coaching AI bridge ready.", color="green")

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    await embed_manager.close()
    await stores.close()
    logging.info("All clients closed.")


def build_app(app_lifespan: Callable | None = lifespan) -> FastAPI:
    """Create the FastAPI app. Tests pass their own lifespan with in-memory wiring."""
    app = FastAPI(
        title="coaching_ai_bridge",
        description=(
            "Access-controlled semantic retrieval over coaching content: session transcripts, "
            "assessments, coaching models, company documents, blog posts and questionnaires. "
            "Every read is filtered by the caller's coach, client or admin identity."
        ),
        version=app_version,
        lifespan=app_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(search_router)
    app.include_router(content_router)
    app.include_router(client_router)
    app.include_router(admin_router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health(request: Request) -> HealthResponse:
        return HealthResponse(
            status="ok",
            version=app_version,
            content_store=request.app.state.stores.content_store.get_engine_name(),
            embed_engine=request.app.state.embed_client.get_engine_name(),
        )

    return app


app = build_app()


# Server Start
if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("API_PORT", "8000"))
    print(f"Starting coaching AI bridge v{app_version} on port {port}...")
    uvicorn.run(app, host="0.0.0.0", port=port)
