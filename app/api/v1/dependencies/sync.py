"""Sync dependencies (composition root): credential cache, CRM source, reconciliation engine."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.api.v1.dependencies.db import get_principal_repo
from app.core.config import get_settings
from app.application.interfaces.services import IRecordSource
from app.application.services.credential_cache import CredentialCache
from app.application.use_cases.sync import ReconciliationEngine
from app.infrastructure.persistence.repositories import PrincipalRepository


def get_credential_cache(request: Request) -> CredentialCache:
    """Process-wide credential cache created in lifespan."""
    return request.app.state.credential_cache


def get_record_source(request: Request) -> IRecordSource:
    """CRM client created in lifespan (shared httpx client)."""
    return request.app.state.crm_client


def get_reconciliation_engine(
    principal_repo: Annotated[PrincipalRepository, Depends(get_principal_repo)],
    credential_cache: Annotated[CredentialCache, Depends(get_credential_cache)],
    record_source: Annotated[IRecordSource, Depends(get_record_source)],
) -> ReconciliationEngine:
    """Engine merging into the request transaction (all-or-nothing per run)."""
    return ReconciliationEngine(
        principal_repo,
        credential_cache,
        record_source,
        fetch_timeout=get_settings().crm_sync_timeout_seconds,
    )
