"""Tests for threatscan/log_store.py"""

import json

import httpx
import pytest

from threatscan.errors import StoreWriteError
from threatscan.log_store import InMemoryLogStore, RestLogStore, content_size
from threatscan.models import LogStatus


class TestInMemoryLogStore:
    @pytest.mark.asyncio
    async def test_insert_creates_pending_record(self, store):
        record = await store.insert("user-1", "events.txt", "Level\nInformation")
        assert record.status == LogStatus.PENDING
        assert record.user_id == "user-1"
        assert record.filename == "events.txt"
        assert record.file_size == len("Level\nInformation")
        assert await store.get(record.id) is record

    @pytest.mark.asyncio
    async def test_file_size_counts_utf8_bytes(self, store):
        record = await store.insert("u", "f", "Ereignis geändert")
        assert record.file_size == len("Ereignis geändert".encode("utf-8"))
        assert content_size("é") == 2

    @pytest.mark.asyncio
    async def test_update_status(self, store):
        record = await store.insert("u", "f", "content")
        updated = await store.update(record.id, status=LogStatus.ANALYZED)
        assert updated.status == LogStatus.ANALYZED
        assert updated.analyzed_at is not None

    @pytest.mark.asyncio
    async def test_update_accepts_status_string(self, store):
        record = await store.insert("u", "f", "content")
        updated = await store.update(record.id, status="failed")
        assert updated.status == LogStatus.FAILED

    @pytest.mark.asyncio
    async def test_update_unknown_record(self, store):
        with pytest.raises(StoreWriteError):
            await store.update("missing", status=LogStatus.FAILED)

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, store):
        record = await store.insert("u", "f", "content")
        with pytest.raises(StoreWriteError):
            await store.update(record.id, colour="red")

    @pytest.mark.asyncio
    async def test_bounded_evicts_oldest(self):
        store = InMemoryLogStore(max_records=2)
        first = await store.insert("u", "a", "1")
        await store.insert("u", "b", "2")
        await store.insert("u", "c", "3")
        assert store.current_size == 2
        assert store.total_count == 3
        assert await store.get(first.id) is None
        assert [r.filename for r in await store.get_recent()] == ["c", "b"]


def _rest_store(handler):
    client = httpx.AsyncClient(
        base_url="http://db.test", transport=httpx.MockTransport(handler),
    )
    return RestLogStore("http://db.test", "anon-key", client=client)


class TestRestLogStore:
    @pytest.mark.asyncio
    async def test_insert_posts_row(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["prefer"] = request.headers.get("Prefer")
            seen["apikey"] = request.headers.get("apikey")
            row = dict(seen["body"], id="42", uploaded_at="2024-01-15T10:30:00+00:00")
            return httpx.Response(201, json=[row])

        record = await _rest_store(handler).insert("user-1", "events.txt", "content")

        assert seen["method"] == "POST"
        assert seen["path"] == "/rest/v1/logs"
        assert seen["prefer"] == "return=representation"
        assert seen["apikey"] == "anon-key"
        assert seen["body"] == {
            "user_id": "user-1",
            "filename": "events.txt",
            "content": "content",
            "file_size": 7,
            "status": "pending",
        }
        assert record.id == "42"
        assert record.status == LogStatus.PENDING

    @pytest.mark.asyncio
    async def test_update_patches_by_id(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["method"] = request.method
            seen["query"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[{
                "id": "42", "user_id": "u", "filename": "f", "content": "c",
                "file_size": 1, "status": "failed",
            }])

        record = await _rest_store(handler).update("42", status=LogStatus.FAILED)

        assert seen["method"] == "PATCH"
        assert seen["query"] == {"id": "eq.42"}
        assert seen["body"] == {"status": "failed"}
        assert record.status == LogStatus.FAILED

    @pytest.mark.asyncio
    async def test_http_error_raises_store_write_error(self):
        store = _rest_store(lambda request: httpx.Response(401, json={"message": "JWT expired"}))
        with pytest.raises(StoreWriteError, match="401"):
            await store.insert("u", "f", "c")

    @pytest.mark.asyncio
    async def test_transport_error_raises_store_write_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StoreWriteError):
            await _rest_store(handler).insert("u", "f", "c")

    @pytest.mark.asyncio
    async def test_empty_insert_response(self):
        store = _rest_store(lambda request: httpx.Response(201, json=[]))
        with pytest.raises(StoreWriteError):
            await store.insert("u", "f", "c")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        store = _rest_store(lambda request: httpx.Response(200, json=[]))
        assert await store.get("nope") is None
