"""DTOs for the reconciliation use case."""

from dataclasses import asdict, dataclass, field

from app.domain.enums import MergeOutcome


@dataclass
class SyncSummary:
    """Counts for one sync run.

    fetched counts every record returned by the CRM, including ones later
    skipped. inserted + updated + unchanged + skipped == fetched.
    """

    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    skipped_ids: list[str] = field(default_factory=list)

    def record(self, outcome: MergeOutcome) -> None:
        """Count a completed merge."""
        if outcome is MergeOutcome.INSERTED:
            self.inserted += 1
        elif outcome is MergeOutcome.UPDATED:
            self.updated += 1
        else:
            self.unchanged += 1

    def skip(self, external_id: str | None = None) -> None:
        """Count a record that could not be merged."""
        self.skipped += 1
        if external_id:
            self.skipped_ids.append(external_id)

    def to_dict(self) -> dict[str, int | list[str]]:
        return asdict(self)
