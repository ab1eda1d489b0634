"""Sync use cases: reconcile CRM contacts into principals."""

from app.application.use_cases.sync.reconcile_contacts import ReconciliationEngine

__all__ = ["ReconciliationEngine"]
