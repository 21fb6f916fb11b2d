"""
Unit tests for API routes module.

Tests the FastAPI endpoints over in-memory storage with dependency overrides.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from faqsearch.api.app import create_app
from faqsearch.api.dependencies import (
    get_embedder,
    get_optional_repository,
    get_repository,
    get_search_service,
    get_shared_chunk_store,
)
from faqsearch.api.middleware import CORRELATION_ID_HEADER, RESPONSE_TIME_HEADER
from faqsearch.config.settings import Settings
from faqsearch.core.embeddings import QueryEmbedder
from faqsearch.retrieval.service import (
    MISSING_QUERY_MESSAGE,
    MISSING_TAG_MESSAGE,
    create_search_service,
)
from faqsearch.utils.exceptions import MissingConfigurationError, StorageConnectionError


# Fixtures
@pytest.fixture
def search_service(repository, indexed_chunk_store, keyword_embeddings):
    """Search service over SQLite, Chroma and deterministic embeddings."""
    return create_search_service(
        Settings(_env_file=None),
        repository,
        indexed_chunk_store,
        QueryEmbedder(keyword_embeddings),
    )


@pytest.fixture
def app(search_service, repository, indexed_chunk_store, keyword_embeddings):
    """Create app with dependency overrides."""
    app = create_app()
    app.dependency_overrides[get_search_service] = lambda: search_service
    app.dependency_overrides[get_optional_repository] = lambda: repository
    app.dependency_overrides[get_shared_chunk_store] = lambda: indexed_chunk_store
    app.dependency_overrides[get_embedder] = lambda: QueryEmbedder(keyword_embeddings)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


class TestRootEndpoint:
    """Tests for root endpoint."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "FAQ Search API"
        assert data["status"] == "running"
        assert data["health"] == "/api/health"


class TestSearchEndpoint:
    """Tests for POST /api/faq/search."""

    def test_search_success(self, client):
        response = client.post("/api/faq/search", json={"query": "환불"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "2개의 관련 FAQ를 찾았습니다."
        assert [item["id"] for item in data["results"]] == ["pub-refund", "pub-subscription"]

    def test_search_never_returns_internal(self, client):
        response = client.post("/api/faq/search", json={"query": "내부 기준"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["results"] == []

    def test_search_results_have_no_score(self, client):
        response = client.post("/api/faq/search", json={"query": "배송"})

        item = response.json()["results"][0]
        assert item["id"] == "pub-delivery"
        assert "score" not in item
        assert "isInternal" not in item
        assert item["createdAt"] == "2024-02-01T09:00:00"

    @pytest.mark.parametrize(
        "body",
        [{}, {"query": ""}, {"query": "   "}, {"query": 42}, {"query": None}],
    )
    def test_search_bad_query(self, client, body):
        response = client.post("/api/faq/search", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "message": MISSING_QUERY_MESSAGE,
            "results": [],
        }

    def test_search_missing_body(self, client):
        response = client.post("/api/faq/search")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == MISSING_QUERY_MESSAGE

    @pytest.mark.parametrize("body", ["환불", ["환불"], 42])
    def test_search_non_object_body(self, client, body):
        response = client.post("/api/faq/search", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "message": MISSING_QUERY_MESSAGE,
            "results": [],
        }

    def test_other_routes_keep_validation_status(self, client):
        response = client.post("/api/faq/tool-search", json="환불")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestCategoryEndpoint:
    """Tests for GET /api/faq/category/{tag}."""

    def test_category_success(self, client):
        response = client.get("/api/faq/category/환불")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "1개의 FAQ를 찾았습니다."
        assert [item["id"] for item in data["results"]] == ["pub-refund"]

    def test_category_blank_tag(self, client):
        response = client.get("/api/faq/category/%20")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "message": MISSING_TAG_MESSAGE,
            "results": [],
        }

    def test_category_unknown_tag(self, client):
        response = client.get("/api/faq/category/없는태그")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["results"] == []


class TestToolSearchEndpoint:
    """Tests for POST /api/faq/tool-search."""

    def test_tool_search_includes_internal(self, client):
        response = client.post("/api/faq/tool-search", json={"query": "환불"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["searchMethod"] in {"vector", "hybrid"}
        internal = [item for item in data["results"] if item["isInternal"]]
        assert [item["id"] for item in internal] == ["int-refund"]
        assert all("score" in item for item in data["results"])

    def test_tool_search_keyword_only(self, client):
        response = client.post(
            "/api/faq/tool-search",
            json={"query": "환불", "useVectorSearch": False},
        )

        data = response.json()
        assert data["searchMethod"] == "keyword"
        assert data["results"][0]["id"] == "int-refund"

    def test_tool_search_empty_query(self, client):
        response = client.post("/api/faq/tool-search", json={"query": "  "})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is False
        assert data["searchMethod"] == "none"
        assert data["results"] == []

    def test_tool_search_non_string_query(self, client):
        response = client.post("/api/faq/tool-search", json={"query": 123})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["searchMethod"] == "none"

    def test_tool_search_connection_error(self, app, client):
        service = MagicMock()
        service.search_for_tool = AsyncMock(side_effect=StorageConnectionError("refused"))
        app.dependency_overrides[get_search_service] = lambda: service

        response = client.post("/api/faq/tool-search", json={"query": "환불"})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "StorageConnectionError"


class TestMissingDatabase:
    """Tests for a missing DATABASE_URL."""

    def test_search_fails_with_configuration_error(self):
        def missing_repository():
            raise MissingConfigurationError("DATABASE_URL is not set")

        app = create_app()
        app.dependency_overrides[get_repository] = missing_repository
        app.dependency_overrides[get_shared_chunk_store] = lambda: MagicMock()
        app.dependency_overrides[get_embedder] = lambda: QueryEmbedder(None)
        client = TestClient(app)

        response = client.post("/api/faq/search", json={"query": "환불"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["error"] == "MissingConfigurationError"
        assert data["message"] == "DATABASE_URL is not set"


class TestHealthEndpoint:
    """Tests for GET /api/health."""

    def test_health_healthy(self, client):
        response = client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {
            "database": True,
            "chunk_store": True,
            "embeddings": True,
        }
        assert data["version"] == "1.0.0"

    def test_health_degraded_without_embeddings(self, app, client):
        app.dependency_overrides[get_embedder] = lambda: QueryEmbedder(None)

        data = client.get("/api/health").json()

        assert data["status"] == "degraded"
        assert data["services"]["embeddings"] is False

    def test_health_unhealthy_without_database(self, app, client):
        app.dependency_overrides[get_optional_repository] = lambda: None

        data = client.get("/api/health").json()

        assert data["status"] == "unhealthy"
        assert data["services"]["database"] is False


class TestMiddleware:
    """Tests for correlation id and timing headers."""

    def test_correlation_id_echoed(self, client):
        response = client.get("/", headers={CORRELATION_ID_HEADER: "abc-123"})

        assert response.headers[CORRELATION_ID_HEADER] == "abc-123"

    def test_correlation_id_generated(self, client):
        response = client.get("/")

        assert response.headers[CORRELATION_ID_HEADER]

    def test_response_time_header(self, client):
        response = client.post("/api/faq/search", json={"query": "환불"})

        assert float(response.headers[RESPONSE_TIME_HEADER]) >= 0.0

    def test_health_not_timed(self, client):
        response = client.get("/api/health")

        assert RESPONSE_TIME_HEADER not in response.headers
