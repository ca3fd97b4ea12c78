"""HTTP glue tests (FastAPI TestClient, in-memory store)."""
import pytest
from fastapi.testclient import TestClient

from tripflow.api.v1.endpoints.conversation import get_engine
from tripflow.core.errors import StaleStateError, StateStoreError
from tripflow.core.session import InMemoryStateStore
from tripflow.main import app


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def post_turn(client, **body):
    return client.post("/api/v1/conversation-state", json=body)


# ==================== SERVICE ====================

class TestService:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/health"


# ==================== CONVERSATION STATE ====================

class TestConversationState:

    def test_get_requires_conversation_id(self, client):
        assert client.get("/api/v1/conversation-state").status_code == 400

    def test_get_creates_state(self, client):
        response = client.get("/api/v1/conversation-state", params={"conversationId": "api-1"})
        body = response.json()

        assert response.status_code == 200
        assert body["state"]["expectedSlot"] == "destination"
        assert body["state"]["version"] == 0
        assert body["prompt"] == "Where would you like to go?"
        assert "destination" in body["missingRequired"]

    def test_answer_slot(self, client):
        response = post_turn(client, conversationId="api-1", slot="destination", value="Paris")
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["status"] == "accepted"
        assert body["locked"] is True
        assert body["expectedSlot"] == "origin"
        assert body["state"]["destination"]["normalized"] == "Paris"

    def test_locked_slot(self, client):
        post_turn(client, conversationId="api-1", slot="destination", value="Paris")

        body = post_turn(client, conversationId="api-1", slot="destination", value="Rome").json()

        assert body["success"] is False
        assert body["status"] == "rejected_locked"
        assert body["state"]["destination"]["normalized"] == "Paris"

    def test_explicit_change(self, client):
        post_turn(client, conversationId="api-1", slot="destination", value="Paris")

        body = post_turn(
            client, conversationId="api-1", slot="destination", value="Rome", explicitChange=True,
        ).json()

        assert body["status"] == "accepted"
        assert body["state"]["destination"]["normalized"] == "Rome"

    def test_clarification(self, client):
        body = post_turn(client, conversationId="api-1", slot="destination", value="Italy").json()

        assert body["status"] == "clarification"
        assert body["needsClarification"] is True
        assert "Rome" in body["suggestions"]

    @pytest.mark.parametrize("body", [
        {"slot": "destination", "value": "Paris"},
        {"conversationId": " ", "value": "Paris"},
        {"conversationId": "a/b", "value": "Paris"},
        {"conversationId": "api-1", "slot": "hotel", "value": "Hilton"},
    ])
    def test_bad_requests(self, client, body):
        assert post_turn(client, **body).status_code == 400


class TestChat:

    def test_free_text_and_change_request(self, client):
        client.post("/api/v1/chat", json={"conversationId": "api-2", "message": "Paris"})

        body = client.post(
            "/api/v1/chat", json={"conversationId": "api-2", "message": "change destination to Rome"},
        ).json()

        assert body["status"] == "accepted"
        assert body["state"]["destination"]["normalized"] == "Rome"


class TestDelete:

    def test_delete(self, client):
        post_turn(client, conversationId="api-3", value="Paris")

        assert client.delete("/api/v1/conversation-state/api-3").status_code == 200
        assert client.delete("/api/v1/conversation-state/api-3").status_code == 404


# ==================== STORE ERRORS ====================

class TestStoreErrors:

    def _client_with(self, make_engine, store):
        app.dependency_overrides[get_engine] = lambda: make_engine(store=store)
        return TestClient(app)

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_stale_state_is_conflict(self, make_engine):
        class RacingStore(InMemoryStateStore):
            def save(self, state, expected_version=None):
                raise StaleStateError(state.conversation_id, expected_version, expected_version + 1)

        client = self._client_with(make_engine, RacingStore())

        assert post_turn(client, conversationId="api-4", value="Paris").status_code == 409

    def test_unavailable_store(self, make_engine):
        class DownStore(InMemoryStateStore):
            def load(self, conversation_id):
                raise StateStoreError("connection refused")

        client = self._client_with(make_engine, DownStore())

        assert post_turn(client, conversationId="api-5", value="Paris").status_code == 503
        assert client.get("/api/v1/conversation-state", params={"conversationId": "api-5"}).status_code == 503
