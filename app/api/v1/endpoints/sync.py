"""Sync API: admin-triggered reconciliation of CRM contacts into principals."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import get_reconciliation_engine, require_admin
from app.application.dtos.principal import PrincipalResult
from app.application.use_cases.sync import ReconciliationEngine
from app.core.limiter import limit_sync
from app.schemas.sync import SyncSummaryResponse

router = APIRouter()


@router.post("", response_model=SyncSummaryResponse)
@limit_sync
async def run_sync(
    request: Request,
    _: Annotated[PrincipalResult, Depends(require_admin)],
    engine: Annotated[ReconciliationEngine, Depends(get_reconciliation_engine)],
):
    """Fetch eligible CRM records and merge them by external id.

    Idempotent: a second run against unchanged CRM data reports every
    record as unchanged. A store failure aborts the run and rolls back.
    """
    summary = await engine.sync()
    return SyncSummaryResponse.model_validate(summary)
