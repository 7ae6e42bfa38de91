"""Log Store backends that persist the canonical content of each entry."""

import asyncio
import collections
import datetime
import logging
import uuid

import httpx

from threatscan.errors import StoreWriteError
from threatscan.models import LogRecord, LogStatus

logger = logging.getLogger(__name__)


def content_size(content: str) -> int:
    """Size in bytes of the content as it will be stored (UTF-8)."""
    return len(content.encode("utf-8"))


def _normalize_fields(fields: dict) -> dict:
    normalized = dict(fields)
    status = normalized.get("status")
    if isinstance(status, LogStatus):
        normalized["status"] = status.value
    if normalized.get("status") == LogStatus.ANALYZED.value and "analyzed_at" not in normalized:
        normalized["analyzed_at"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return normalized


class InMemoryLogStore:
    """Bounded in-process store; oldest records are evicted first."""

    def __init__(self, max_records: int = 10000):
        self._records: collections.OrderedDict[str, LogRecord] = collections.OrderedDict()
        self._max_records = max_records
        self._lock = asyncio.Lock()
        self._total_count = 0

    async def insert(self, user_id: str, filename: str, content: str) -> LogRecord:
        record = LogRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            filename=filename,
            content=content,
            file_size=content_size(content),
            status=LogStatus.PENDING,
        )
        async with self._lock:
            self._records[record.id] = record
            self._total_count += 1
            while len(self._records) > self._max_records:
                self._records.popitem(last=False)
        logger.debug("Stored %s (%d bytes)", record.filename, record.file_size)
        return record

    async def update(self, record_id: str, **fields) -> LogRecord:
        fields = _normalize_fields(fields)
        async with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise StoreWriteError(f"Log record {record_id} not found")
            for key, value in fields.items():
                if key == "status":
                    value = LogStatus(value)
                elif not hasattr(record, key) or key == "id":
                    raise StoreWriteError(f"Unknown log record field: {key}")
                setattr(record, key, value)
            return record

    async def get(self, record_id: str) -> LogRecord | None:
        async with self._lock:
            return self._records.get(record_id)

    async def get_recent(self, count: int = 50) -> list[LogRecord]:
        """Return the last `count` records, most recent first."""
        async with self._lock:
            return list(self._records.values())[-count:][::-1]

    @property
    def total_count(self) -> int:
        """Total number of records ever inserted."""
        return self._total_count

    @property
    def current_size(self) -> int:
        return len(self._records)

    async def aclose(self):
        pass


class RestLogStore:
    """PostgREST table client (the hosted backend's `logs` table)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "logs",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._table = table
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    @property
    def _path(self) -> str:
        return f"/rest/v1/{self._table}"

    async def _request(self, method: str, params: dict | None = None, json: dict | None = None):
        try:
            response = await self._client.request(
                method, self._path, params=params, json=json, headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise StoreWriteError(f"Log store unreachable: {e}") from e

        if response.status_code >= 400:
            raise StoreWriteError(
                f"Log store rejected {method} ({response.status_code}): {response.text[:200]}"
            )
        rows = response.json()
        if isinstance(rows, dict):
            rows = [rows]
        return rows

    async def insert(self, user_id: str, filename: str, content: str) -> LogRecord:
        payload = {
            "user_id": user_id,
            "filename": filename,
            "content": content,
            "file_size": content_size(content),
            "status": LogStatus.PENDING.value,
        }
        rows = await self._request("POST", json=payload)
        if not rows:
            raise StoreWriteError("Log store returned no row for insert")
        return LogRecord.from_dict(rows[0])

    async def update(self, record_id: str, **fields) -> LogRecord:
        rows = await self._request(
            "PATCH", params={"id": f"eq.{record_id}"}, json=_normalize_fields(fields),
        )
        if not rows:
            raise StoreWriteError(f"Log record {record_id} not found")
        return LogRecord.from_dict(rows[0])

    async def get(self, record_id: str) -> LogRecord | None:
        rows = await self._request("GET", params={"id": f"eq.{record_id}", "select": "*"})
        return LogRecord.from_dict(rows[0]) if rows else None

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()
