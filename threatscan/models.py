"""Data models for parsed entries, stored records and scan results."""

import datetime
from dataclasses import dataclass, field
from enum import Enum


class LogStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    ANALYZED = "analyzed"
    FAILED = "failed"


@dataclass(frozen=True)
class LogEntry:
    """One event line extracted from a raw event-log export."""

    level: str
    timestamp: str
    source: str
    event_id: str
    category: str
    description: str = ""


def _utcnow_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass
class LogRecord:
    id: str
    user_id: str
    filename: str
    content: str
    file_size: int
    status: LogStatus = LogStatus.PENDING
    uploaded_at: str = field(default_factory=_utcnow_iso)
    analyzed_at: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "filename": self.filename,
            "content": self.content,
            "file_size": self.file_size,
            "status": self.status.value,
            "uploaded_at": self.uploaded_at,
            "analyzed_at": self.analyzed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LogRecord":
        return cls(
            id=str(data["id"]),
            user_id=data.get("user_id", ""),
            filename=data.get("filename", ""),
            content=data.get("content", ""),
            file_size=int(data.get("file_size") or 0),
            status=LogStatus(data.get("status", LogStatus.PENDING.value)),
            uploaded_at=data.get("uploaded_at") or _utcnow_iso(),
            analyzed_at=data.get("analyzed_at"),
        )


@dataclass(frozen=True)
class AnalysisOutcome:
    threats_found: int = 0
    is_rate_limited: bool = False
    retry_after_seconds: int | None = None


@dataclass
class SubmissionResult:
    """Running aggregate owned by a single driver run."""

    total_entries: int = 0
    processed_count: int = 0
    threats_found: int = 0
    progress_fraction: float = 0.0

    def record_processed(self, threats: int = 0):
        """Count one finished entry and refresh the progress fraction."""
        if self.processed_count >= self.total_entries:
            raise ValueError("processed_count cannot exceed total_entries")
        self.processed_count += 1
        self.threats_found += max(threats, 0)
        self.progress_fraction = self.processed_count / self.total_entries

    def snapshot(self) -> "SubmissionResult":
        return SubmissionResult(
            total_entries=self.total_entries,
            processed_count=self.processed_count,
            threats_found=self.threats_found,
            progress_fraction=self.progress_fraction,
        )


@dataclass
class ScanSummary:
    result: SubmissionResult
    stored: int = 0
    analyzed: int = 0
    abandoned: int = 0
    store_failures: int = 0
    message: str = ""

    @property
    def threats_found(self) -> int:
        return self.result.threats_found

    @property
    def processed_count(self) -> int:
        return self.result.processed_count
