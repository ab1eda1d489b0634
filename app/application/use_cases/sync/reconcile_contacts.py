"""Reconcile CRM contacts into the principal table."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.application.dtos.sync import SyncSummary
from app.domain.enums import MergeOutcome
from app.domain.exceptions import ExternalFetchFailure, ValidationException
from app.domain.value_objects import SyncRecord
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.repositories import IPrincipalRepository
    from app.application.interfaces.services import IRecordSource
    from app.application.services.credential_cache import CredentialCache

logger = get_logger(__name__)


def _raw_external_id(raw: Any) -> str | None:
    value = raw.get("Id") if isinstance(raw, dict) else None
    return value if isinstance(value, str) and value.strip() else None


class ReconciliationEngine:
    """Merges the CRM's sync-eligible records into local principals.

    The whole record set is fetched before anything is written, so a fetch
    failure leaves the table untouched. Records are merged one at a time
    in arrival order; a record that cannot be parsed or stored is skipped
    and counted, while a storage failure aborts the run and the caller's
    transaction rolls every merge back.
    """

    def __init__(
        self,
        principal_repo: "IPrincipalRepository",
        credential_cache: "CredentialCache",
        record_source: "IRecordSource",
        clock: Callable[[], datetime] = utc_now,
        fetch_timeout: float | None = None,
    ) -> None:
        self._principals = principal_repo
        self._credentials = credential_cache
        self._source = record_source
        self._clock = clock
        self._fetch_timeout = fetch_timeout

    @traced("sync.reconcile_contacts")
    async def sync(self) -> SyncSummary:
        """Fetch eligible records and merge them.

        Returns:
            Counts; inserted + updated + unchanged + skipped == fetched.

        Raises:
            ExternalAuthFailure: No usable CRM credential.
            ExternalFetchFailure: The record query failed or ran past
                fetch_timeout; nothing merged.
            PersistenceFailure: The store failed mid-batch.
        """
        try:
            raw_records = await asyncio.wait_for(
                self._credentials.call_with_credential(self._source.fetch_eligible),
                timeout=self._fetch_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("CRM fetch exceeded %ss", self._fetch_timeout)
            raise ExternalFetchFailure("timeout") from e
        summary = SyncSummary(fetched=len(raw_records))
        synced_at = self._clock()
        updated_ids: list[str] = []
        for raw in raw_records:
            try:
                record = SyncRecord.from_external(raw)
                outcome, principal_id = await self._principals.upsert_from_sync(
                    record, synced_at
                )
            except ValidationException as e:
                external_id = _raw_external_id(raw)
                logger.warning(
                    "Skipping sync record %s: %s", external_id or "<no id>", e.message
                )
                summary.skip(external_id)
                continue
            summary.record(outcome)
            if outcome is MergeOutcome.UPDATED and principal_id:
                updated_ids.append(principal_id)
        await self._principals.invalidate_cached(updated_ids)
        add_span_attributes(
            **{f"sync.{k}": v for k, v in summary.to_dict().items() if isinstance(v, int)}
        )
        logger.info(
            "Sync finished: fetched=%d inserted=%d updated=%d unchanged=%d skipped=%d",
            summary.fetched,
            summary.inserted,
            summary.updated,
            summary.unchanged,
            summary.skipped,
        )
        return summary
