"""Tests for threatscan/models.py"""

import pytest

from threatscan.models import LogRecord, LogStatus, SubmissionResult


class TestSubmissionResult:
    def test_starts_at_zero(self):
        result = SubmissionResult(total_entries=3)
        assert result.processed_count == 0
        assert result.threats_found == 0
        assert result.progress_fraction == 0.0

    def test_record_processed(self):
        result = SubmissionResult(total_entries=4)
        result.record_processed(2)
        result.record_processed(0)
        assert result.processed_count == 2
        assert result.threats_found == 2
        assert result.progress_fraction == 0.5

    def test_negative_threats_ignored(self):
        result = SubmissionResult(total_entries=1)
        result.record_processed(-3)
        assert result.threats_found == 0

    def test_cannot_exceed_total(self):
        result = SubmissionResult(total_entries=1)
        result.record_processed()
        with pytest.raises(ValueError):
            result.record_processed()

    def test_snapshot_is_independent(self):
        result = SubmissionResult(total_entries=2)
        snap = result.snapshot()
        result.record_processed(1)
        assert snap.processed_count == 0


class TestLogRecord:
    def test_dict_round_trip(self):
        record = LogRecord(id="1", user_id="u", filename="f", content="c", file_size=1)
        data = record.to_dict()
        assert data["status"] == "pending"
        assert LogRecord.from_dict(data) == record


def test_log_statuses():
    assert [s.value for s in LogStatus] == ["pending", "processing", "analyzed", "failed"]
