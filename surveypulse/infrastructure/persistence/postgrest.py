"""
PostgREST Response Store - Managed Postgres over HTTP
=====================================================

Reads survey responses from a Supabase-style PostgREST endpoint:

    GET {url}/rest/v1/survey_responses?select=...&tenant_id=eq.T&order=created_at.asc

WHY REQUESTS:
- The REST surface is small (one filtered GET)
- Same HTTP client the rest of the project uses

ERROR MAPPING:
- Postgres 42703 (undefined column), 42P01 (undefined table) or a message
  containing "does not exist" -> SchemaDriftError
- Anything else (HTTP errors, timeouts, bad JSON) -> ResponseStoreError
"""

import logging
from datetime import datetime
from typing import List, Optional

import requests

from ...domain.periods import to_iso
from .store import Projection, ResponseStore, ResponseStoreError, SchemaDriftError

logger = logging.getLogger(__name__)

SCHEMA_DRIFT_CODES = ("42703", "42P01")


class PostgrestResponseStore(ResponseStore):
    """
    ResponseStore backed by PostgREST.

    USAGE:
        store = PostgrestResponseStore(
            base_url="https://xyz.supabase.co",
            service_key="service-role-key",
        )
        rows = store.query_responses("tenant-uuid", Projection.EXTENDED)
    """

    name = "postgrest"

    def __init__(
        self,
        base_url: str,
        service_key: str,
        table: str = "survey_responses",
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        if not base_url or not service_key:
            raise ValueError("PostgREST store requires a base URL and a service key")
        self._url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Accept": "application/json",
        })

    def query_responses(
        self,
        tenant_id: str,
        projection: Projection = Projection.BASE,
        template_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[dict]:
        params = [
            ("select", ",".join(projection.columns)),
            ("tenant_id", f"eq.{tenant_id}"),
        ]
        if template_id is not None:
            params.append(("template_id", f"eq.{template_id}"))
        if start:
            params.append(("created_at", f"gte.{to_iso(start)}"))
        if end:
            params.append(("created_at", f"lte.{to_iso(end)}"))
        params.append(("order", f"created_at.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        return self._get(params)

    def latest_tenant_id(self, require_rating: bool = False) -> Optional[str]:
        params = [("select", "tenant_id"), ("tenant_id", "not.is.null")]
        if require_rating:
            params.append(("overall_rating", "not.is.null"))
        params += [("order", "created_at.desc"), ("limit", "1")]

        rows = self._get(params)
        return rows[0].get("tenant_id") if rows else None

    def _get(self, params: list) -> List[dict]:
        try:
            response = self._session.get(self._url, params=params, timeout=self._timeout)
        except requests.Timeout as e:
            raise ResponseStoreError(f"Response store timeout after {self._timeout}s") from e
        except requests.RequestException as e:
            raise ResponseStoreError(f"Response store unreachable: {e}") from e

        if not response.ok:
            raise self._translate(response)

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseStoreError("Response store returned invalid JSON") from e

        if not isinstance(data, list):
            raise ResponseStoreError("Response store returned an unexpected payload")
        return data

    @staticmethod
    def _translate(response: requests.Response) -> ResponseStoreError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = str(body.get("code") or "")
        message = str(body.get("message") or response.text or f"HTTP {response.status_code}")

        if code in SCHEMA_DRIFT_CODES or "does not exist" in message.lower():
            return SchemaDriftError(message)
        return ResponseStoreError(message)
