"""
Unit tests for the user RPC adapter.
"""

import asyncio
import threading

import grpc
import pytest

from service_users.app.adapters.user_rpc_adapter import UserRpcAdapter, coerce_user_id
from service_users.app.domain.errors import InvalidIdentifierError
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeRpcError, FakeUserServiceClient, create_user_record


class TestCoerceUserId:
    """Test cases for identifier coercion."""

    @pytest.mark.parametrize("raw, expected", [
        ("7", 7),
        (" 42 ", 42),
        ("-3", -3),
        (9, 9),
        (str(2 ** 63 - 1), 2 ** 63 - 1),
    ])
    def test_valid_identifiers(self, raw, expected):
        """Integers and decimal strings are accepted."""
        assert coerce_user_id(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "7a", "", "1.5", "0x10", None, True, 1.0, str(2 ** 63)])
    def test_invalid_identifiers(self, raw):
        """Anything else is a caller error."""
        with pytest.raises(InvalidIdentifierError):
            coerce_user_id(raw)


class TestUserRpcAdapter:
    """Test cases for UserRpcAdapter."""

    @pytest.fixture
    def client(self):
        """Fake callback client seeded with one user."""
        return FakeUserServiceClient(users=[create_user_record(user_id=1)])

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("user-graphql-service")

    @pytest.fixture
    def adapter(self, client, metrics):
        return UserRpcAdapter(client, metrics=metrics)

    @pytest.mark.asyncio
    async def test_get_user_coerces_identifier(self, adapter, client):
        """String ids are sent to the remote as integers."""
        record = await adapter.get_user("1")

        assert record.id == 1
        assert client.calls == [("get_user", {"id": 1})]

    @pytest.mark.asyncio
    async def test_invalid_identifier_never_reaches_the_client(self, adapter, client):
        """A non-numeric id rejects before any remote call is issued."""
        with pytest.raises(InvalidIdentifierError):
            await adapter.get_user("not-a-number")

        with pytest.raises(InvalidIdentifierError):
            await adapter.update_user("x", {"name": "Ada"})

        with pytest.raises(InvalidIdentifierError):
            await adapter.delete_user("x")

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_remote_error_is_raised_verbatim(self, adapter, client):
        """The remote error object is re-raised untouched."""
        error = FakeRpcError(grpc.StatusCode.UNAVAILABLE, "connection refused")
        client.fail("get_user", error)

        with pytest.raises(FakeRpcError) as excinfo:
            await adapter.get_user(1)

        assert excinfo.value is error
        assert len(client.calls_to("get_user")) == 1

    @pytest.mark.asyncio
    async def test_get_all_users_empty(self, adapter, client):
        """An empty remote answers with an empty list record."""
        client.users.clear()

        record = await adapter.get_all_users()

        assert record.users == []
        assert record.total_count == 0

    @pytest.mark.asyncio
    async def test_create_user_sends_payload_unchanged(self, adapter, client):
        """The create payload reaches the client as given."""
        payload = {"name": "Ada", "email": "ada@example.com", "role": "USER"}

        record = await adapter.create_user(payload)

        assert client.calls_to("create_user") == [payload]
        assert record.id == 2
        assert record.name == "Ada"

    @pytest.mark.asyncio
    async def test_update_user_sends_only_present_fields(self, adapter, client):
        """Only the supplied fields travel with the id."""
        record = await adapter.update_user("1", {"role": "ADMIN"})

        assert client.calls_to("update_user") == [{"id": 1, "role": "ADMIN"}]
        assert record.role == "ADMIN"
        assert record.name == "John Doe"

    @pytest.mark.asyncio
    async def test_delete_user_success(self, adapter, client):
        """An explicit success flag is returned as True."""
        assert await adapter.delete_user("1") is True
        assert 1 not in client.users

    @pytest.mark.asyncio
    async def test_delete_missing_indicator_is_success(self, adapter, client):
        """No explicit failure indicator is reported as success.

        Deleting an unknown id answers without ``success`` on the wire, and
        the adapter deliberately treats that as a successful delete.
        """
        assert await adapter.delete_user("999") is True

        client.respond("delete_user", {})
        assert await adapter.delete_user("1") is True

    @pytest.mark.asyncio
    async def test_delete_explicit_failure(self, adapter, client):
        """An explicit ``success: false`` is reported as failure."""
        client.respond("delete_user", {"success": False, "message": "User not found"})

        assert await adapter.delete_user("1") is False

    @pytest.mark.asyncio
    async def test_one_remote_call_per_invocation(self, adapter, client):
        """Identical concurrent calls are neither batched nor deduplicated."""
        await asyncio.gather(adapter.get_user(1), adapter.get_user(1), adapter.get_user(1))

        assert len(client.calls_to("get_user")) == 3

    @pytest.mark.asyncio
    async def test_callback_from_worker_thread(self, adapter):
        """Completions delivered from another thread resolve the awaiting call."""

        class ThreadedClient(FakeUserServiceClient):
            def _process(self, operation, request, callback):
                worker = threading.Thread(
                    target=super()._process, args=(operation, request, callback)
                )
                worker.start()

        adapter.client = ThreadedClient(users=[create_user_record(user_id=5)])

        record = await adapter.get_user("5")

        assert record.id == 5

    @pytest.mark.asyncio
    async def test_cancelled_request_does_not_cancel_remote_call(self, adapter):
        """Cancelling the caller leaves the outbound call to complete on its own."""
        client = FakeUserServiceClient(users=[create_user_record(user_id=1)], defer=True)
        adapter.client = client

        task = asyncio.create_task(adapter.get_user(1))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(client.pending) == 1
        client.complete_all()
        await asyncio.sleep(0)

        assert client.calls_to("get_user") == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_rpc_metrics_are_recorded(self, adapter, client, metrics):
        """Each call is counted by operation and outcome."""
        await adapter.get_user(1)
        client.fail("get_user", FakeRpcError())
        with pytest.raises(FakeRpcError):
            await adapter.get_user(1)

        assert metrics.sample_value(
            "rpc_calls_total", {"operation": "get_user", "status": "ok"}
        ) == 1.0
        assert metrics.sample_value(
            "rpc_calls_total", {"operation": "get_user", "status": "error"}
        ) == 1.0
