"""
Apify client for the LinkedIn Ad Library scraper actor

Three calls only: start a run, read its status, read its dataset. The dataset
can be read while the run is still going; items are appended as they are scraped.
"""
import logging
from typing import Optional, Dict, List, Any

import httpx

from adlens.core.config import settings
from adlens.core.exceptions import ProviderError
from adlens.schemas.scrape import RunConfig, StartRunResult, RunStatusResult

logger = logging.getLogger(__name__)

AD_LIBRARY_SEARCH_URL = "https://www.linkedin.com/ad-library/search?companyIds={company_id}"

# Provider run states after which the dataset will not grow any more
TERMINAL_STATUSES = frozenset({"SUCCEEDED", "FAILED", "ABORTED", "TIMED-OUT"})
SUCCEEDED = "SUCCEEDED"


def is_terminal_status(status: Optional[str]) -> bool:
    return (status or "").upper() in TERMINAL_STATUSES


class ApifyClient:
    """
    Thin HTTP client for the Apify v2 API.

    Every failure (transport error, non-2xx, unexpected body) surfaces as
    ProviderError; callers must not assume a run exists if start_run raises.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        actor_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token if token is not None else settings.APIFY_API_TOKEN
        self.actor_id = actor_id or settings.APIFY_ACTOR_ID
        self.base_url = (base_url or settings.APIFY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.APIFY_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, transport=self._transport)
        return self._client

    def close(self):
        """Close the HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ========================================
    # Internals
    # ========================================

    def _headers(self) -> Dict[str, str]:
        if not (self.token or "").strip():
            raise ProviderError("APIFY_API_TOKEN is not set")
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Apify {method} {path} failed: {e}")
            raise ProviderError(f"Apify request failed: {e}") from e

        if response.status_code >= 300:
            logger.error(f"Apify {method} {path} returned {response.status_code}")
            raise ProviderError(
                f"Apify {method} {path} failed ({response.status_code}): {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Apify {method} {path}: response is not JSON") from e

    @staticmethod
    def _data(body: Any, what: str) -> Dict[str, Any]:
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise ProviderError(f"Apify {what}: missing data envelope")
        return data

    @staticmethod
    def build_input(config: RunConfig) -> Dict[str, Any]:
        """Actor input payload for a run config"""
        if config.start_urls:
            urls = list(config.start_urls)
        else:
            urls = [AD_LIBRARY_SEARCH_URL.format(company_id=config.company_id.strip())]

        payload: Dict[str, Any] = {
            "startUrls": [{"url": u} for u in urls],
            "skipDetails": False,
        }
        if config.results_limit:
            payload["resultsLimit"] = config.results_limit
        return payload

    # ========================================
    # Runs API
    # ========================================

    def start_run(self, config: RunConfig) -> StartRunResult:
        """Start the actor; dataset id may be null until the provider allocates it"""
        body = self._request(
            "POST",
            f"/acts/{self.actor_id}/runs",
            json=self.build_input(config),
        )
        data = self._data(body, "start_run")

        run_id = data.get("id")
        if not run_id:
            raise ProviderError("Apify start_run: no run id in response")

        result = StartRunResult(run_id=str(run_id), dataset_id=data.get("defaultDatasetId"))
        logger.info(f"Started Apify run {result.run_id} (dataset {result.dataset_id})")
        return result

    def get_run_status(self, run_id: str) -> RunStatusResult:
        body = self._request("GET", f"/actor-runs/{run_id}")
        data = self._data(body, "get_run_status")

        status = data.get("status")
        if not status:
            raise ProviderError(f"Apify get_run_status: run {run_id} has no status")
        return RunStatusResult(status=str(status).upper(), dataset_id=data.get("defaultDatasetId"))

    # ========================================
    # Datasets API
    # ========================================

    def get_dataset_items(self, dataset_id: str) -> List[Dict[str, Any]]:
        """Current dataset items in order; safe to call while the run is in flight"""
        items = self._request(
            "GET",
            f"/datasets/{dataset_id}/items",
            params={"format": "json", "clean": "true"},
        )
        if not isinstance(items, list):
            raise ProviderError("Apify get_dataset_items: expected a JSON array")
        return items


def get_apify_client() -> ApifyClient:
    """Build a client from settings; the caller owns its lifecycle"""
    return ApifyClient()
