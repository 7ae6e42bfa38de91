import pytest

from threatscan.config import SubmissionSettings
from threatscan.log_store import InMemoryLogStore
from threatscan.models import LogEntry


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


class ScriptedAnalyzer:
    """Analyzer stub that replays scripted outcomes or exceptions in order.

    The last scripted item repeats once the script runs out.
    """

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def analyze(self, record_id: str, content: str):
        self.calls.append((record_id, content))
        index = min(len(self.calls), len(self._responses)) - 1
        response = self._responses[index]
        if isinstance(response, BaseException):
            raise response
        return response

    async def aclose(self):
        pass


class FailingInsertStore(InMemoryLogStore):
    """In-memory store whose insert fails for the given 0-based call numbers."""

    def __init__(self, fail_on: set[int]):
        super().__init__()
        self._fail_on = fail_on
        self._inserts = 0

    async def insert(self, user_id, filename, content):
        call = self._inserts
        self._inserts += 1
        if call in self._fail_on:
            raise ConnectionError("database unavailable")
        return await super().insert(user_id, filename, content)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def store():
    return InMemoryLogStore()


@pytest.fixture
def settings():
    return SubmissionSettings()


@pytest.fixture
def sample_export():
    return (
        "Level\tDate and Time\tSource\tEvent ID\tTask Category\n"
        "Information\t2024-01-15 10:30:00\tSystem\t7036\tNone\tThe Windows Update service entered the running state.\n"
        "Warning\t2024-01-15 10:31:00\tMicrosoft-Windows-DistributedCOM\t10016\tNone\tPermission settings do not grant Local Activation.\n"
        "Error\t2024-01-15 10:32:00\tService Control Manager\t7034\tNone\tThe Print Spooler service terminated unexpectedly.\n"
    )


@pytest.fixture
def make_entries():
    def _make(count: int) -> list[LogEntry]:
        return [
            LogEntry(
                level="Information",
                timestamp=f"2024-01-15 10:{i:02d}:00",
                source="System",
                event_id=str(7000 + i),
                category="None",
                description=f"event {i}",
            )
            for i in range(count)
        ]
    return _make
