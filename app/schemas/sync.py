"""Sync API schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SyncSummaryResponse(BaseModel):
    """Counts from one reconciliation run."""

    model_config = ConfigDict(from_attributes=True)

    fetched: int
    inserted: int
    updated: int
    unchanged: int
    skipped: int
    skipped_ids: list[str] = Field(default_factory=list)
