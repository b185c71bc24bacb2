"""
Application facade exposing draft operations by id.
"""

from typing import Any

from draft_reconciler.observability import metrics
from draft_reconciler.observability.logger import get_logger

from ..errors import OracleFailure
from ..models import Draft, ExtractionResult, ReservationAudit
from .extraction import ExtractionOracle
from .manager import CommitOutcome, DraftLifecycleManager

logger = get_logger(__name__)


class DraftService:
    """
    Id-based operations for callers outside the core (HTTP handlers, CLI).

    Args:
        manager: Lifecycle manager doing the work
        oracle: Extraction oracle used by submit_text (optional)

    All id lookups raise DraftNotFoundError for unknown ids.
    """

    def __init__(self, manager: DraftLifecycleManager, oracle: ExtractionOracle | None = None):
        self.manager = manager
        self.oracle = oracle

    @property
    def repository(self):
        return self.manager.repository

    def create_draft(self, raw_text: str) -> Draft:
        return self.manager.create(raw_text)

    def get_draft(self, draft_id: int) -> Draft:
        return self.repository.get_draft(draft_id)

    def find_duplicates(self, raw_text: str) -> list[Draft]:
        return self.manager.find_duplicates(raw_text)

    def ingest_extraction(self, draft_id: int, extraction: ExtractionResult) -> Draft:
        """Attach an oracle result (or the degraded fallback) to a draft and normalize it."""
        draft = self.get_draft(draft_id)
        updated = self.manager.receive_parsed(
            draft,
            extraction.parsed_document(),
            confidence=extraction.confidence,
            notes=extraction.notes,
        )
        metrics.increment_counter(
            metrics.extractions_ingested_total,
            outcome="fallback" if extraction.degraded else "ok",
        )
        return updated

    def submit_text(self, raw_text: str) -> Draft:
        """
        Create a draft, run the extraction oracle once, and ingest its result.

        When the oracle fails, the draft still gets a parsed document: the
        degraded all-null guess, so a reviewer can fill it in by hand.
        """
        if self.oracle is None:
            raise RuntimeError("DraftService was created without an extraction oracle")

        draft = self.create_draft(raw_text)
        try:
            extraction = self.oracle.extract(raw_text)
        except OracleFailure as e:
            logger.warning(
                "Extraction failed, using degraded guess",
                extra={"draft_id": draft.draft_id, "error_message": str(e)},
            )
            extraction = ExtractionResult.fallback(raw_text, reason=f"extraction failed: {e.message}")
        return self.ingest_extraction(draft.draft_id, extraction)

    def edit_draft(self, draft_id: int, patch: dict[str, Any]) -> Draft:
        return self.manager.apply_manual_edit(self.get_draft(draft_id), patch)

    def validate_draft(self, draft_id: int):
        return self.manager.validate(self.get_draft(draft_id))

    def commit_draft(self, draft_id: int, actor: str | None = None) -> CommitOutcome:
        return self.manager.commit(self.get_draft(draft_id), actor=actor)

    def reject_draft(self, draft_id: int, reason: str) -> Draft:
        return self.manager.reject(self.get_draft(draft_id), reason)

    def get_audit_trail(self, reservation_id: int) -> list[ReservationAudit]:
        return self.repository.list_audits(reservation_id)
