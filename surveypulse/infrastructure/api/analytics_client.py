"""
Analytics API Client - Live Dashboard Endpoint
==============================================

Calls a running SurveyPulse server the same way the dashboard UI does,
so the validation tool can diff the live payload against its own
recomputation.

USAGE:
    client = AnalyticsApiClient("http://127.0.0.1:8000", token="...")
    result = client.fetch_executive("tenant-1", {"period": "all"})
    result.ok, result.status, result.body
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class AnalyticsApiError(Exception):
    """The live endpoint could not be reached at all."""
    pass


@dataclass
class ApiResult:
    status: int
    ok: bool
    body: dict = field(default_factory=dict)


class AnalyticsApiClient:
    """HTTP client for ``/api/analytics``."""

    ENDPOINT = "/api/analytics"

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ValueError("An API base URL is required")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._session = session or requests.Session()

    def fetch_executive(self, tenant_id: str, params: dict) -> ApiResult:
        """GET the executive dashboard for a tenant."""
        headers = {"Accept": "application/json", "X-Tenant-Id": tenant_id}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        query = {"action": "survey-executive", **params}

        try:
            response = self._session.get(
                f"{self._base_url}{self.ENDPOINT}",
                params=query,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.Timeout as e:
            raise AnalyticsApiError(f"Analytics API timeout after {self._timeout}s") from e
        except requests.RequestException as e:
            raise AnalyticsApiError(f"Analytics API unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {"_non_json_body": response.text[:300]}
        if not isinstance(body, dict):
            body = {"_non_json_body": str(body)[:300]}

        logger.info(f"Analytics API responded {response.status_code} for tenant {tenant_id}")
        return ApiResult(status=response.status_code, ok=response.ok, body=body)
