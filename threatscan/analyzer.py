"""Analyzer clients that submit one stored entry for threat classification.

The remote function owns the classification prompt; this module only speaks
its contract: `{"logId", "content"}` in, `{"threatsFound", "isRateLimited",
"retryAfter"}` out, with HTTP 429 meaning "slow down".
"""

import logging

import httpx

from threatscan.errors import AnalyzerError, AnalyzerUnavailableError
from threatscan.models import AnalysisOutcome

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
PAYMENT_REQUIRED_STATUS = 402


def _to_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _safe_json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def outcome_from_response(response: httpx.Response) -> AnalysisOutcome:
    """Translate an analyzer HTTP response into an AnalysisOutcome.

    Raises AnalyzerError for any non-2xx status other than 429.
    """
    body = _safe_json(response)

    if response.status_code == RATE_LIMIT_STATUS or body.get("isRateLimited"):
        retry_after = _to_int(body.get("retryAfter"))
        if retry_after is None:
            retry_after = _to_int(response.headers.get("Retry-After"))
        return AnalysisOutcome(is_rate_limited=True, retry_after_seconds=retry_after)

    if response.status_code == PAYMENT_REQUIRED_STATUS:
        raise AnalyzerError("Analyzer credits exhausted", status_code=response.status_code)

    if response.status_code >= 400:
        message = body.get("error") or f"Analyzer returned HTTP {response.status_code}"
        raise AnalyzerError(str(message), status_code=response.status_code)

    threats = _to_int(body.get("threatsFound")) or 0
    return AnalysisOutcome(threats_found=max(threats, 0))


class HttpAnalyzer:
    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def analyze(self, record_id: str, content: str) -> AnalysisOutcome:
        try:
            response = await self._client.post(
                self._url,
                json={"logId": record_id, "content": content},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise AnalyzerUnavailableError(f"Analyzer unreachable: {e}") from e

        outcome = outcome_from_response(response)
        logger.debug(
            "Analyzer response for %s: status=%d threats=%d rate_limited=%s",
            record_id, response.status_code, outcome.threats_found, outcome.is_rate_limited,
        )
        return outcome

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()


class NullAnalyzer:
    """Reports zero threats for every entry; used for dry runs."""

    async def analyze(self, record_id: str, content: str) -> AnalysisOutcome:
        return AnalysisOutcome()

    async def aclose(self):
        pass
