"""
Tests for the Supabase document store against a mocked client
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from clinic_booking.db.supabase_store import MERGE_RPC, SupabaseDocumentStore
from clinic_booking.exceptions import DocumentNotFoundError, DocumentStoreError


def result(data):
    return SimpleNamespace(data=data)


@pytest.fixture
def mock_supabase():
    """Mock async Supabase client; every chain ends in an awaitable execute()"""
    mock = MagicMock()
    table = mock.table.return_value
    for chain in (
        table.select.return_value.eq.return_value.limit.return_value,
        table.select.return_value.eq.return_value.order.return_value,
        table.select.return_value.eq.return_value.contains.return_value.order.return_value,
        table.upsert.return_value,
        table.insert.return_value,
        mock.rpc.return_value,
    ):
        chain.execute = AsyncMock(return_value=result([]))
    return mock


@pytest.fixture
def supabase_store(mock_supabase):
    return SupabaseDocumentStore(mock_supabase, table="documents", increment_rpc="increment_document_field")


class TestSupabaseDocumentStore:

    @pytest.mark.asyncio
    async def test_get_reads_row_by_path(self, supabase_store, mock_supabase):
        chain = mock_supabase.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = result([{"path": "patients/p1", "data": {"appointmentCount": 2}}])

        doc = await supabase_store.get("patients/p1")

        mock_supabase.table.assert_called_with("documents")
        mock_supabase.table.return_value.select.return_value.eq.assert_called_with("path", "patients/p1")
        assert doc.id == "p1"
        assert doc.data == {"appointmentCount": 2}

    @pytest.mark.asyncio
    async def test_set_upserts_row(self, supabase_store, mock_supabase):
        await supabase_store.set("patients/p1/appointments/a1", {"status": "pending"})

        row = mock_supabase.table.return_value.upsert.call_args.args[0]
        assert row == {
            "path": "patients/p1/appointments/a1",
            "collection": "patients/p1/appointments",
            "collection_id": "appointments",
            "doc_id": "a1",
            "data": {"status": "pending"},
        }

    @pytest.mark.asyncio
    async def test_merge_goes_through_rpc(self, supabase_store, mock_supabase):
        await supabase_store.set("appointments/a1", {"status": "confirmed"}, merge=True)

        name, params = mock_supabase.rpc.call_args.args
        assert name == MERGE_RPC
        assert params["p_path"] == "appointments/a1"
        assert params["p_collection_id"] == "appointments"
        assert params["p_data"] == {"status": "confirmed"}

    @pytest.mark.asyncio
    async def test_update_missing_document(self, supabase_store):
        with pytest.raises(DocumentNotFoundError):
            await supabase_store.update("patients/missing", {"a": 1})

    @pytest.mark.asyncio
    async def test_query_keeps_exact_matches(self, supabase_store, mock_supabase):
        chain = mock_supabase.table.return_value.select.return_value.eq.return_value.contains.return_value.order.return_value
        chain.execute.return_value = result([
            {"path": "discountCodes/a", "data": {"code": "SAVE10"}},
            {"path": "discountCodes/b", "data": {"code": ["SAVE10"]}},
        ])

        docs = await supabase_store.query("discountCodes", "code", "SAVE10")

        assert [doc.id for doc in docs] == ["a"]

    @pytest.mark.asyncio
    async def test_increment_calls_rpc(self, supabase_store, mock_supabase):
        mock_supabase.rpc.return_value.execute.return_value = result(5)

        value = await supabase_store.increment("discountCodes/save10", "usageCount")

        name, params = mock_supabase.rpc.call_args.args
        assert name == "increment_document_field"
        assert params["p_field"] == "usageCount"
        assert params["p_amount"] == 1
        assert value == 5

    @pytest.mark.asyncio
    async def test_client_errors_are_wrapped(self, supabase_store, mock_supabase):
        mock_supabase.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("503")

        with pytest.raises(DocumentStoreError):
            await supabase_store.set("patients/p1", {})


class TestClientFactory:

    @pytest.mark.asyncio
    async def test_missing_credentials(self, monkeypatch):
        from clinic_booking import database

        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.setattr(database, "_clients", {})

        with pytest.raises(ValueError):
            await database.get_booking_client_async()

    @pytest.mark.asyncio
    async def test_client_cached_per_schema(self, monkeypatch):
        from clinic_booking import database

        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
        monkeypatch.setattr(database, "_clients", {})
        factory = AsyncMock(return_value=MagicMock())
        monkeypatch.setattr(database, "create_async_client", factory)

        first = await database.get_booking_client_async()
        second = await database.get_booking_client_async()

        assert first is second
        factory.assert_awaited_once()
        assert factory.await_args.kwargs["options"].schema == "booking"
