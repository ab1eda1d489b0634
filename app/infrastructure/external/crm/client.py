"""HTTP client for the external CRM (Salesforce-style REST API).

Two calls: the OAuth token exchange and the SOQL query for sync-eligible
records. Raw CRM payloads are logged at debug level only and never copied
into exception details.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

import httpx

from app.core.config import Settings
from app.core.constants import CRM_SYNC_FIELDS
from app.domain.exceptions import (
    ExternalAuthFailure,
    ExternalAuthorizationRejected,
    ExternalFetchFailure,
)
from app.domain.value_objects import ExternalCredential
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def build_sync_query(settings: Settings) -> str:
    """SOQL selecting the syncable fields of every record matching the sync filter."""
    fields = ", ".join(CRM_SYNC_FIELDS)
    return (
        f"SELECT {fields} FROM {settings.crm_sync_object} "
        f"WHERE {settings.crm_sync_filter}"
    )


class CrmClient:
    """ICredentialExchanger and IRecordSource over a shared httpx.AsyncClient."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._settings = settings
        self._timeout = settings.crm_request_timeout_seconds

    def _token_request_data(self) -> dict[str, str]:
        s = self._settings
        data = {
            "grant_type": s.crm_grant_type,
            "client_id": s.crm_client_id,
            "client_secret": s.crm_client_secret.get_secret_value(),
        }
        if s.crm_grant_type == "password":
            password = s.crm_password.get_secret_value() if s.crm_password else ""
            security_token = (
                s.crm_security_token.get_secret_value() if s.crm_security_token else ""
            )
            data["username"] = s.crm_username or ""
            data["password"] = password + security_token
        return data

    async def exchange_credentials(self) -> tuple[str, str]:
        """POST the configured grant to the token endpoint.

        Returns:
            (access_token, instance_url)

        Raises:
            ExternalAuthFailure: Transport error, non-200, or incomplete payload.
        """
        try:
            response = await self._http.post(
                self._settings.crm_auth_url,
                data=self._token_request_data(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            logger.error("CRM token exchange transport error: %s", type(e).__name__)
            raise ExternalAuthFailure("transport error") from e
        if response.status_code != 200:
            logger.error(
                "CRM token exchange failed: status=%d", response.status_code
            )
            raise ExternalAuthFailure(
                "token endpoint rejected the request", status_code=response.status_code
            )
        try:
            payload: Any = response.json()
        except ValueError as e:
            raise ExternalAuthFailure("token response is not JSON") from e
        if not isinstance(payload, dict):
            raise ExternalAuthFailure("token response is not an object")
        access_token = payload.get("access_token")
        instance_url = payload.get("instance_url")
        if not isinstance(access_token, str) or not access_token:
            raise ExternalAuthFailure("missing access_token")
        if not isinstance(instance_url, str) or not instance_url:
            raise ExternalAuthFailure("missing instance_url")
        logger.info("CRM token exchanged for instance %s", instance_url)
        return access_token, instance_url

    async def _get_page(
        self,
        url: str,
        credential: ExternalCredential,
        params: dict[str, str] | None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {credential.access_token}"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("CRM query timed out after %ss", self._timeout)
            raise ExternalFetchFailure("timeout") from e
        except httpx.HTTPError as e:
            logger.error("CRM query transport error: %s", type(e).__name__)
            raise ExternalFetchFailure("transport error") from e
        if response.status_code == 401:
            logger.info("CRM rejected the access token")
            raise ExternalAuthorizationRejected()
        if not response.is_success:
            logger.error("CRM query failed: status=%d", response.status_code)
            logger.debug("CRM query error body: %s", response.text)
            raise ExternalFetchFailure(
                "query failed", status_code=response.status_code
            )
        try:
            payload: Any = response.json()
        except ValueError as e:
            raise ExternalFetchFailure("query response is not JSON") from e
        if not isinstance(payload, dict) or not isinstance(payload.get("records"), list):
            raise ExternalFetchFailure("missing records")
        return payload

    async def fetch_eligible(self, credential: ExternalCredential) -> list[Any]:
        """Return every record matching the sync filter, following nextRecordsUrl.

        Raises:
            ExternalAuthorizationRejected: CRM answered 401 for this token.
            ExternalFetchFailure: Any other failure or a payload without records.
        """
        base = credential.instance_url.rstrip("/") + "/"
        url = urljoin(
            base, f"services/data/{self._settings.crm_api_version}/query"
        )
        params: dict[str, str] | None = {"q": build_sync_query(self._settings)}
        records: list[Any] = []
        while True:
            page = await self._get_page(url, credential, params)
            records.extend(page["records"])
            next_url = page.get("nextRecordsUrl")
            if page.get("done", True) or not next_url:
                break
            url = urljoin(base, next_url)
            params = None
        logger.info("CRM returned %d sync-eligible records", len(records))
        return records
