# FILE: tests/conftest.py
"""
Pytest configuration for the coaching AI bridge test suite.

Configures:
- pytest-asyncio for async test support
- a deterministic bag-of-words embedder standing in for the provider
- in-memory stores seeded with two coaching companies
"""
import logging

import pytest

from services.access.AccessPolicy import AccessPolicy
from services.auth.CredentialVerifier import CredentialVerifier
from services.ingestion.IngestionService import IngestionService
from services.provisioning.ProvisioningService import ProvisioningService
from services.retrieval.RetrievalService import RetrievalService
from shared.errors import ProviderError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.RetryPolicy import RetryPolicy
from shared.models.identity import (
    Admin,
    Assignment,
    Client,
    ClientOrganization,
    Coach,
    Principal,
    Scope,
)
from shared.stores.memory.ContentStoreMemory import ContentStoreMemory
from shared.stores.memory.CredentialStoreMemory import CredentialStoreMemory
from shared.stores.memory.TenantStoreMemory import TenantStoreMemory

pytest_plugins = ["pytest_asyncio"]

FAKE_DIMENSION = 2048


##########################################
################ HELPERS #################
##########################################

def words(count: int, prefix: str = "w", start: int = 0) -> str:
    """Distinct words, e.g. words(3) == "w0 w1 w2"."""
    return " ".join(f"{prefix}{i}" for i in range(start, start + count))


def principal(identity, *scopes: Scope) -> Principal:
    return Principal(identity=identity, scopes=frozenset(scopes or (Scope.READ, Scope.WRITE)))


class FakeEmbedClient:
    """Bag-of-words embedder. Each distinct word gets its own dimension, in order of first sight."""

    def __init__(self, dimension: int = FAKE_DIMENSION) -> None:
        self.dimension = dimension
        self.vocabulary: dict[str, int] = {}
        self.calls = 0

    def get_engine_name(self) -> str:
        return "fake"

    def get_dimension(self) -> int:
        return self.dimension

    async def boot(self, transport=None) -> None:
        return None

    async def close(self) -> None:
        return None

    async def do_healthcheck(self) -> None:
        return None

    def embed_one(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token in text.lower().split():
            index = self.vocabulary.setdefault(token, len(self.vocabulary))
            vector[index % self.dimension] += 1.0
        return vector

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        self.calls += 1
        if isinstance(texts, str):
            texts = [texts]
        return [self.embed_one(text) for text in texts]


class FailingEmbedClient(FakeEmbedClient):
    """Fails every call from the fail_from-th onwards (1-based)."""

    def __init__(self, fail_from: int = 1, retryable: bool = False) -> None:
        super().__init__()
        self.fail_from = fail_from
        self.retryable = retryable

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        if self.calls + 1 >= self.fail_from:
            self.calls += 1
            raise ProviderError("embedding backend unavailable", retryable=self.retryable)
        return await super().do_embed(texts)


##########################################
################ FIXTURES ################
##########################################

@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    """Fast bcrypt and retries, isolated file locations."""
    monkeypatch.setenv("CREDENTIAL_BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("EMBED_RETRY_MIN_WAIT", "0.001")
    monkeypatch.setenv("EMBED_RETRY_MAX_WAIT", "0.002")
    monkeypatch.setenv("EMBED_RETRY_ATTEMPTS", "3")
    monkeypatch.setenv("DIRECTORY_FILE_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    for key in ("CONTENT_STORE_ENGINE", "DIRECTORY_STORE_ENGINE", "CREDENTIAL_CACHE_TTL",
                "SEARCH_DEFAULT_THRESHOLD", "SEARCH_DEFAULT_LIMIT", "SEARCH_MAX_LIMIT",
                "TIMELINE_MAX_LIMIT", "INGEST_CONCURRENCY", "EMBED_DIMENSION", "EMBED_ENGINE",
                "BOOTSTRAP_ADMIN_ID", "BOOTSTRAP_COMPANY_ID", "BOOTSTRAP_ADMIN_NAME", "API_KEY_ENVIRONMENT"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("coaching_bridge.tests"))


@pytest.fixture
def embed_client() -> FakeEmbedClient:
    return FakeEmbedClient()


@pytest.fixture
async def tenant_store(helper_config) -> TenantStoreMemory:
    """Two companies: acme (coach-1 assigned to client-a, coach-2 unassigned) and globex."""
    store = TenantStoreMemory(helper_config=helper_config)
    await store.add_coach(Coach(id="coach-1", name="Ada", company_id="acme"))
    await store.add_coach(Coach(id="coach-2", name="Bert", company_id="acme"))
    await store.add_admin(Admin(id="admin-1", name="Ann", company_id="acme"))
    await store.add_organization(ClientOrganization(id="org-a", name="Initech", company_id="acme"))
    await store.add_client(Client(id="client-a", name="Carla", organization_id="org-a"))
    await store.add_client(Client(id="client-b", name="Dan", organization_id="org-a"))
    await store.add_assignment(Assignment(coach_id="coach-1", client_id="client-a"))

    await store.add_coach(Coach(id="coach-9", name="Gina", company_id="globex"))
    await store.add_admin(Admin(id="admin-9", name="Gus", company_id="globex"))
    await store.add_organization(ClientOrganization(id="org-g", name="Hooli", company_id="globex"))
    await store.add_client(Client(id="client-g", name="Hank", organization_id="org-g"))
    await store.add_assignment(Assignment(coach_id="coach-9", client_id="client-g"))
    return store


@pytest.fixture
def credential_store(helper_config) -> CredentialStoreMemory:
    return CredentialStoreMemory(helper_config=helper_config)


@pytest.fixture
def content_store(helper_config) -> ContentStoreMemory:
    return ContentStoreMemory(helper_config=helper_config)


@pytest.fixture
def access_policy(helper_config, tenant_store) -> AccessPolicy:
    return AccessPolicy(helper_config=helper_config, tenant_store=tenant_store)


@pytest.fixture
def retry_policy(helper_config) -> RetryPolicy:
    return RetryPolicy(helper_config)


@pytest.fixture
def ingestion(helper_config, content_store, embed_client, access_policy, retry_policy) -> IngestionService:
    return IngestionService(
        helper_config=helper_config,
        content_store=content_store,
        embed_client=embed_client,
        access_policy=access_policy,
        retry_policy=retry_policy,
    )


@pytest.fixture
def retrieval(helper_config, content_store, embed_client, access_policy, retry_policy) -> RetrievalService:
    return RetrievalService(
        helper_config=helper_config,
        content_store=content_store,
        embed_client=embed_client,
        access_policy=access_policy,
        retry_policy=retry_policy,
    )


@pytest.fixture
def verifier(helper_config, credential_store, tenant_store) -> CredentialVerifier:
    return CredentialVerifier(helper_config=helper_config, credential_store=credential_store, tenant_store=tenant_store)


@pytest.fixture
def provisioning(helper_config, tenant_store, credential_store, access_policy, verifier) -> ProvisioningService:
    return ProvisioningService(
        helper_config=helper_config,
        tenant_store=tenant_store,
        credential_store=credential_store,
        access_policy=access_policy,
        verifier=verifier,
    )


##########################################
############### PRINCIPALS ###############
##########################################

@pytest.fixture
async def coach_1(tenant_store) -> Principal:
    return principal(await tenant_store.get_coach("coach-1"))


@pytest.fixture
async def coach_2(tenant_store) -> Principal:
    return principal(await tenant_store.get_coach("coach-2"))


@pytest.fixture
async def coach_9(tenant_store) -> Principal:
    return principal(await tenant_store.get_coach("coach-9"))


@pytest.fixture
async def client_a(tenant_store) -> Principal:
    return principal(await tenant_store.get_client("client-a"))


@pytest.fixture
async def client_b(tenant_store) -> Principal:
    return principal(await tenant_store.get_client("client-b"))


@pytest.fixture
async def admin_1(tenant_store) -> Principal:
    return principal(await tenant_store.get_admin("admin-1"), Scope.READ, Scope.WRITE, Scope.ADMIN)


@pytest.fixture
async def admin_9(tenant_store) -> Principal:
    return principal(await tenant_store.get_admin("admin-9"), Scope.READ, Scope.WRITE, Scope.ADMIN)
