# FILE: tests/test_api.py
"""
Tests for server/api/
HTTP surface: bearer authentication, error mapping, content, search, timeline
and admin routes. The app is wired with in-memory stores and the fake embedder
and driven through httpx.ASGITransport.
"""

import logging

import httpx
import pytest

from conftest import words
from server.api.api_app import build_app, wire_services
from shared.models.identity import Role, Scope
from shared.stores.StoreManager import StoreManager


@pytest.fixture
def app(helper_config, tenant_store, credential_store, content_store, embed_client):
    stores = StoreManager(helper_config=helper_config)
    stores.tenant_store = tenant_store
    stores.credential_store = credential_store
    stores.content_store = content_store
    app = build_app(app_lifespan=None)
    app.state.logging = logging.getLogger("coaching_bridge.tests.api")
    wire_services(app, helper_config, stores, embed_client)
    return app


@pytest.fixture
async def http(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def tokens(app, admin_1) -> dict[str, str]:
    """Plaintext keys for the seeded identities."""
    provisioning = app.state.provisioning_service
    issued = {
        "coach-1": await provisioning.issue_credential(admin_1, Role.COACH, "coach-1", scopes=[Scope.READ, Scope.WRITE]),
        "coach-1-ro": await provisioning.issue_credential(admin_1, Role.COACH, "coach-1"),
        "coach-2": await provisioning.issue_credential(admin_1, Role.COACH, "coach-2", scopes=[Scope.READ, Scope.WRITE]),
        "client-a": await provisioning.issue_credential(admin_1, Role.CLIENT, "client-a"),
        "admin-1": await provisioning.issue_credential(admin_1, Role.ADMIN, "admin-1", scopes=[Scope.ADMIN]),
    }
    return {name: credential.token for name, credential in issued.items()}


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _transcript_body(**overrides) -> dict:
    body = {
        "content": words(700, prefix="api"),
        "content_type": "transcript",
        "owner_client_id": "client-a",
        "title": "Kickoff",
        "session_date": "2024-03-01",
    }
    body.update(overrides)
    return body


class TestAuthentication:
    """Test bearer token handling."""

    async def test_health_is_open(self, http):
        """Test the health endpoint needs no key."""
        response = await http.get("/health")
        assert response.status_code == 200
        assert response.json()["content_store"] == "memory"
        assert response.json()["embed_engine"] == "fake"

    async def test_missing_token(self, http):
        """Test requests without a key get 401 with a Bearer challenge."""
        response = await http.post("/api/v2/search", json={"query": "goals"})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "AuthenticationError"

    async def test_unknown_token(self, http):
        """Test a made-up key gets 401."""
        response = await http.post("/api/v2/search", json={"query": "goals"}, headers=_auth("sk_live_" + "ab" * 24))
        assert response.status_code == 401

    async def test_read_only_key_cannot_write(self, http, tokens):
        """Test a read-scoped key is refused on ingestion."""
        response = await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1-ro"]))
        assert response.status_code == 403


class TestContentRoutes:
    """Test ingestion, lookup and deletion over HTTP."""

    async def test_create_get_and_chunks(self, http, tokens):
        """Test an upload is complete on return and readable by its owner."""
        created = await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1"]))
        assert created.status_code == 201
        item = created.json()
        assert item["status"] == "complete"
        assert item["chunk_count"] == 2
        assert item["raw_content"] is None

        fetched = await http.get(f"/api/v2/content/{item['id']}", headers=_auth(tokens["coach-1"]))
        assert fetched.status_code == 200
        assert fetched.json()["raw_content"] == words(700, prefix="api")

        chunks = await http.get(f"/api/v2/content/{item['id']}/chunks", headers=_auth(tokens["coach-1"]))
        assert [chunk["index"] for chunk in chunks.json()["chunks"]] == [0, 1]

    async def test_validation_error(self, http, tokens):
        """Test too-short content maps to 400."""
        response = await http.post("/api/v2/content", json=_transcript_body(content="short"), headers=_auth(tokens["coach-1"]))
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    async def test_unreadable_is_404(self, http, tokens):
        """Test another coach gets 404 for an item they cannot read."""
        item = (await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1"]))).json()
        response = await http.get(f"/api/v2/content/{item['id']}", headers=_auth(tokens["coach-2"]))
        assert response.status_code == 404

    async def test_delete(self, http, tokens):
        """Test the owner deletes with 204 and the item is gone afterwards."""
        item = (await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1"]))).json()
        response = await http.delete(f"/api/v2/content/{item['id']}", headers=_auth(tokens["coach-1"]))
        assert response.status_code == 204
        assert (await http.get(f"/api/v2/content/{item['id']}", headers=_auth(tokens["coach-1"]))).status_code == 404


class TestSearchRoute:
    """Test the search endpoint."""

    async def test_search_results(self, http, tokens):
        """Test the owner finds their content and the client does not see coach_only chunks."""
        await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1"]))
        query = {"query": words(200, prefix="api"), "threshold": 0.1}

        response = await http.post("/api/v2/search", json=query, headers=_auth(tokens["coach-1"]))
        assert response.status_code == 200
        payload = response.json()
        assert payload["total"] >= 1
        assert payload["type_counts"]["transcript"] == payload["total"]
        assert payload["results"][0]["title"] == "Kickoff"

        hidden = await http.post("/api/v2/search", json=query, headers=_auth(tokens["client-a"]))
        assert hidden.json()["total"] == 0

    async def test_invalid_threshold(self, http, tokens):
        """Test a threshold outside [-1, 1] maps to 400."""
        response = await http.post("/api/v2/search", json={"query": "goals", "threshold": 2}, headers=_auth(tokens["coach-1"]))
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidQueryError"

    async def test_filters(self, http, tokens):
        """Test content type filters are passed through."""
        await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1"]))
        body = {"query": words(200, prefix="api"), "filters": {"content_types": ["questionnaire"]}}
        response = await http.post("/api/v2/search", json=body, headers=_auth(tokens["coach-1"]))
        assert response.json()["results"] == []


class TestTimelineRoute:
    """Test the client timeline endpoint."""

    async def test_timeline(self, http, tokens):
        """Test the assigned coach sees the client's history and others get 404."""
        await http.post("/api/v2/content", json=_transcript_body(), headers=_auth(tokens["coach-1"]))
        response = await http.get("/api/v2/clients/client-a/timeline", params={"types": "transcript", "limit": 5},
                                  headers=_auth(tokens["coach-1"]))
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["title"] == "Kickoff"

        denied = await http.get("/api/v2/clients/client-a/timeline", headers=_auth(tokens["coach-2"]))
        assert denied.status_code == 404

    async def test_unknown_type(self, http, tokens):
        """Test an unknown type in the csv maps to 400."""
        response = await http.get("/api/v2/clients/client-a/timeline", params={"types": "podcast"},
                                  headers=_auth(tokens["coach-1"]))
        assert response.status_code == 400


class TestAdminRoutes:
    """Test provisioning over HTTP."""

    async def test_coach_is_forbidden(self, http, tokens):
        """Test a coach key cannot reach admin routes."""
        response = await http.get("/api/admin/assignments", headers=_auth(tokens["coach-1"]))
        assert response.status_code == 403

    async def test_assignment_flow(self, http, tokens):
        """Test assigning a client opens the timeline to the coach, unassigning closes it."""
        created = await http.post("/api/admin/assignments", json={"coach_id": "coach-2", "client_id": "client-a"},
                                  headers=_auth(tokens["admin-1"]))
        assert created.status_code == 201
        timeline = await http.get("/api/v2/clients/client-a/timeline", headers=_auth(tokens["coach-2"]))
        assert timeline.status_code == 200

        listed = await http.get("/api/admin/assignments", params={"coach_id": "coach-2"}, headers=_auth(tokens["admin-1"]))
        assert [a["client_id"] for a in listed.json()] == ["client-a"]

        removed = await http.delete("/api/admin/assignments/coach-2/client-a", headers=_auth(tokens["admin-1"]))
        assert removed.status_code == 204
        timeline = await http.get("/api/v2/clients/client-a/timeline", headers=_auth(tokens["coach-2"]))
        assert timeline.status_code == 404

    async def test_credential_lifecycle(self, http, tokens):
        """Test issuing returns the key once, listing hides hashes, revoking blocks the key."""
        issued = await http.post("/api/admin/credentials", json={"role": "client", "owner_id": "client-b"},
                                 headers=_auth(tokens["admin-1"]))
        assert issued.status_code == 201
        token = issued.json()["token"]
        credential_id = issued.json()["credential"]["id"]
        assert "key_hash" not in issued.json()["credential"]

        ok = await http.post("/api/v2/search", json={"query": "goals"}, headers=_auth(token))
        assert ok.status_code == 200

        listed = await http.get("/api/admin/credentials", headers=_auth(tokens["admin-1"]))
        assert credential_id in [c["id"] for c in listed.json()]
        assert all("key_hash" not in c for c in listed.json())

        revoked = await http.post(f"/api/admin/credentials/{credential_id}/revoke", headers=_auth(tokens["admin-1"]))
        assert revoked.json()["revoked"] is True
        assert (await http.post("/api/v2/search", json={"query": "goals"}, headers=_auth(token))).status_code == 401

    async def test_register_directory_entries(self, http, tokens):
        """Test organisations, clients and coaches can be registered."""
        assert (await http.post("/api/admin/organizations", json={"id": "org-b", "name": "Umbrella"},
                                headers=_auth(tokens["admin-1"]))).status_code == 201
        client = await http.post("/api/admin/clients", json={"id": "client-c", "name": "Eve", "organization_id": "org-b"},
                                 headers=_auth(tokens["admin-1"]))
        assert client.json()["organization_id"] == "org-b"
        coach = await http.post("/api/admin/coaches", json={"id": "coach-3", "name": "Cleo"}, headers=_auth(tokens["admin-1"]))
        assert coach.json()["company_id"] == "acme"
