"""Application use cases: one entry point per workflow."""

from app.application.use_cases.sync import ReconciliationEngine

__all__ = ["ReconciliationEngine"]
