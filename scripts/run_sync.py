"""Run one CRM reconciliation outside HTTP (e.g. from cron).

Usage:
    uv run python -m scripts.run_sync
Exits non-zero when the run fails; the summary is printed as JSON.
"""

import asyncio
import json
import sys

import httpx

from app.application.use_cases.sync import ReconciliationEngine
from app.core.config import get_settings
from app.core.lifespan import build_credential_cache
from app.domain.exceptions import SfdcSyncException
from app.infrastructure.external.crm.client import CrmClient
from app.infrastructure.persistence import database
from app.infrastructure.persistence.repositories import PrincipalRepository
from app.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Fetch eligible CRM records and merge them in one transaction."""
    settings = get_settings()
    setup_logging()
    factory = database.get_session_factory()
    async with httpx.AsyncClient(timeout=settings.crm_request_timeout_seconds) as http:
        crm_client = CrmClient(http, settings)
        credential_cache = build_credential_cache(settings, crm_client)
        try:
            async with factory() as session:
                async with session.begin():
                    engine = ReconciliationEngine(
                        PrincipalRepository(session),
                        credential_cache,
                        crm_client,
                        fetch_timeout=settings.crm_sync_timeout_seconds,
                    )
                    summary = await engine.sync()
        except SfdcSyncException as e:
            print(json.dumps(e.to_dict()), file=sys.stderr)
            sys.exit(1)
        finally:
            if database.engine is not None:
                await database.engine.dispose()
    print(json.dumps(summary.to_dict()))


if __name__ == "__main__":
    asyncio.run(main())
