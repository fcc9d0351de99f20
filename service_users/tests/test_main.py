"""
Unit tests for the user subgraph service.
"""

import asyncio
import contextvars
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from service_users.app.main import UserSubgraphService
from shared.config import SubgraphConfig
from shared.logging import request_id_var
from shared.test_helpers import FakeRpcError, FakeUserServiceClient, create_user_record


class TestUserSubgraphService:
    """Test cases for UserSubgraphService."""

    @pytest.fixture
    def fake_client(self):
        return FakeUserServiceClient(users=[create_user_record(user_id=1)])

    @pytest.fixture
    def config(self):
        return SubgraphConfig(env="local", grpc_service_url="localhost:19090")

    @pytest.fixture
    def service(self, config, fake_client):
        return UserSubgraphService(config=config, client=fake_client)

    @pytest.fixture
    def client(self, service):
        with TestClient(service.app) as test_client:
            yield test_client

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "user-graphql-service"
        assert data["graphql_path"] == "/graphql"

    def test_health_endpoint(self, client, fake_client):
        """The liveness probe never calls the remote service."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "user-graphql-service"
        assert "timestamp" in data
        assert fake_client.calls == []

    def test_health_while_remote_is_down(self, client, fake_client):
        fake_client.fail("get_user", FakeRpcError())
        assert client.get("/health").status_code == 200

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_graphql_query(self, client):
        response = client.post("/graphql", json={"query": '{ user(id: "1") { id name role } }'})

        assert response.status_code == 200
        assert response.json() == {
            "data": {"user": {"id": "1", "name": "John Doe", "role": "USER"}}
        }

    def test_graphql_partial_failure(self, client, fake_client):
        """A failing field still returns sibling data in the same response."""
        fake_client.fail("get_user", FakeRpcError())

        response = client.post(
            "/graphql", json={"query": '{ user(id: "1") { id } users { id } }'}
        )

        body = response.json()
        assert body["data"]["user"] is None
        assert body["data"]["users"] == [{"id": "1"}]
        assert body["errors"][0]["path"] == ["user"]
        assert body["errors"][0]["extensions"]["code"] == "EXTERNAL_SERVICE_ERROR"

    def test_metrics_endpoint(self, client):
        client.post("/graphql", json={"query": "{ users { id } }"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "rpc_calls_total" in response.text
        assert "http_requests_total" in response.text

    def test_introspection_disabled_in_production(self, fake_client):
        service = UserSubgraphService(
            config=SubgraphConfig(env="production"), client=fake_client
        )

        with TestClient(service.app) as client:
            response = client.post("/graphql", json={"query": "{ __schema { queryType { name } } }"})

        assert response.json()["errors"]

    def test_channel_closed_on_shutdown(self, config):
        remote = MagicMock()

        service = UserSubgraphService(config=config, client=remote)
        with TestClient(service.app):
            pass

        remote.close.assert_called_once_with()

    def test_remote_not_contacted_at_startup(self, config, fake_client):
        service = UserSubgraphService(config=config, client=fake_client)
        with TestClient(service.app):
            pass

        assert fake_client.calls == []


class TestLoopExceptionHandler:
    """Unhandled asynchronous errors outside a request are fatal."""

    @pytest.fixture
    def service(self):
        return UserSubgraphService(config=SubgraphConfig(), client=FakeUserServiceClient())

    def test_unhandled_exception_terminates(self, service):
        loop = MagicMock(spec=asyncio.AbstractEventLoop)

        with patch("shared.base_service.os._exit") as exit_mock:
            service._handle_loop_exception(loop, {
                "message": "Task exception was never retrieved",
                "exception": RuntimeError("boom"),
            })

        exit_mock.assert_called_once_with(1)
        loop.default_exception_handler.assert_not_called()

    def test_transport_errors_are_not_fatal(self, service):
        loop = MagicMock(spec=asyncio.AbstractEventLoop)
        context = {"message": "Fatal read error", "exception": ConnectionResetError()}

        with patch("shared.base_service.os._exit") as exit_mock:
            service._handle_loop_exception(loop, context)

        exit_mock.assert_not_called()
        loop.default_exception_handler.assert_called_once_with(context)

    def test_request_task_failure_is_not_fatal(self, service):
        """A task spawned while a request id was bound fails without exiting."""
        request_context = contextvars.copy_context()
        request_context.run(request_id_var.set, "req-42")
        task = MagicMock()
        task.get_context.return_value = request_context
        loop = MagicMock(spec=asyncio.AbstractEventLoop)
        context = {"message": "Task exception was never retrieved", "exception": RuntimeError("boom"), "task": task}

        with patch("shared.base_service.os._exit") as exit_mock:
            service._handle_loop_exception(loop, context)

        exit_mock.assert_not_called()
        loop.default_exception_handler.assert_called_once_with(context)

    def test_background_task_failure_is_fatal(self, service):
        task = MagicMock()
        task.get_context.return_value = contextvars.Context()
        loop = MagicMock(spec=asyncio.AbstractEventLoop)

        with patch("shared.base_service.os._exit") as exit_mock:
            service._handle_loop_exception(loop, {
                "message": "Task exception was never retrieved",
                "exception": RuntimeError("boom"),
                "task": task,
            })

        exit_mock.assert_called_once_with(1)

    def test_error_inside_request_is_answered_not_fatal(self, service):
        @service.app.get("/explode")
        async def explode():
            raise RuntimeError("boom")

        with patch("shared.base_service.os._exit") as exit_mock:
            with TestClient(service.app, raise_server_exceptions=False) as client:
                response = client.get("/explode")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        exit_mock.assert_not_called()
