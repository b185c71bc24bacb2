"""
Draft Lifecycle Manager: owns the state machine of a draft.

    draft --receive_parsed--> normalized --apply_manual_edit--> reviewed
      |                            |                              |
      +---------- reject ----------+------------------------------+--> rejected
                                   +----------- commit -----------+--> committed

Every operation reloads the draft from the repository, checks the stored
status, and writes the new state back. Inputs are never mutated; the
updated draft is returned. Manual edits are merged by the repository per
key, so concurrent reviewers never drop each other's fields.
"""

from datetime import datetime
from functools import partial
from typing import Any, Callable

from pydantic import BaseModel

from draft_reconciler.observability import metrics
from draft_reconciler.observability.logger import get_logger, log_operation

from ..diff import diff, summarize
from ..errors import InvalidPatchError, LifecycleError
from ..merging import merge
from ..models import (
    Draft,
    Reservation,
    ReservationAudit,
    ValidationResult,
    from_wire,
    origin_hash_for,
    to_wire,
)
from ..models.fields import unknown_fields
from ..normalization import normalize
from ..rules import ValidationPolicy, validate

logger = get_logger(__name__)

Normalizer = Callable[[dict[str, Any]], dict[str, Any]]
Clock = Callable[[], datetime]


class CommitOutcome(BaseModel):
    """
    Result of a commit attempt.

    Attributes:
        committed: True if a reservation was created
        draft: Draft after the attempt (unchanged when not committed)
        validation: Validation result the decision was based on
        reservation: Created reservation, when committed
        audit: Stored audit entry, when committed
    """

    committed: bool
    draft: Draft
    validation: ValidationResult
    reservation: Reservation | None = None
    audit: ReservationAudit | None = None


class DraftLifecycleManager:
    """
    Applies lifecycle operations to drafts stored in a DraftRepository.

    Args:
        repository: Storage adapter (owns the commit critical section)
        normalizer: Value normalizer; by default normalize() with the policy's
            extras field definitions
        policy: Validation policy for commit and dry-run validation
        clock: Source of "now" (UTC); also decides "today" for validation
    """

    def __init__(
        self,
        repository,
        *,
        normalizer: Normalizer | None = None,
        policy: ValidationPolicy | None = None,
        clock: Clock | None = None,
    ):
        self.repository = repository
        self.policy = policy
        self.normalizer = normalizer or partial(
            normalize,
            field_definitions=policy.field_definitions if policy else None,
        )
        self.clock = clock or datetime.utcnow

    def create(self, raw_text: str) -> Draft:
        """
        Create a draft from raw booking text.

        Resubmitting a text already on file is allowed; the earlier drafts
        are logged and can be found with find_duplicates().

        Raises:
            ValueError: If raw_text is empty or blank
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ValueError("raw_text must be a non-empty string")

        now = self.clock()
        origin_hash = origin_hash_for(raw_text)
        earlier = self.repository.find_drafts_by_origin(origin_hash)
        draft = self.repository.add_draft(
            Draft(raw_text=raw_text, origin_hash=origin_hash, created_at=now, updated_at=now)
        )
        metrics.increment_counter(metrics.drafts_created_total)
        logger.info("Draft created", extra={"draft_id": draft.draft_id, "status": draft.status})
        if earlier:
            logger.warning(
                "Raw text already submitted",
                extra={"draft_id": draft.draft_id, "earlier_draft_ids": [d.draft_id for d in earlier]},
            )
        return draft

    def find_duplicates(self, raw_text: str) -> list[Draft]:
        """Drafts whose raw text matches this one (after trimming), oldest first."""
        return self.repository.find_drafts_by_origin(origin_hash_for(raw_text))

    def receive_parsed(
        self,
        draft: Draft,
        parsed: dict[str, Any],
        *,
        confidence: float | None = None,
        notes: str | None = None,
    ) -> Draft:
        """
        Store the first-pass guess and its normalized form.

        The parsed document is written once; a second write is refused.

        Raises:
            LifecycleError: If the draft already has a parsed document or is terminal
        """
        current = self._load(draft, "receive parsed result for")
        if current.parsed is not None:
            raise LifecycleError(
                "receive parsed result for", current.draft_id, current.status,
                f"Draft {current.draft_id} already has a parsed document",
            )

        parsed = from_wire(parsed)
        current.parsed = parsed
        current.normalized = self.normalizer(parsed)
        current.confidence = confidence
        current.extracted_notes = notes
        if current.status == "draft":
            current.status = "normalized"
        return self._save(current, "Draft normalized")

    def renormalize(self, draft: Draft) -> Draft:
        """Re-run the normalizer over the stored parsed document (e.g. after normalizer changes)."""
        current = self._load(draft, "renormalize")
        if current.parsed is None:
            raise LifecycleError(
                "renormalize", current.draft_id, current.status,
                f"Draft {current.draft_id} has no parsed document to normalize",
            )
        current.normalized = self.normalizer(current.parsed)
        if current.status == "draft":
            current.status = "normalized"
        return self._save(current, "Draft renormalized")

    def apply_manual_edit(self, draft: Draft, patch: dict[str, Any]) -> Draft:
        """
        Overwrite manual fields with the patch (shallow, per key).

        The merge happens atomically in the repository, so fields written by
        a concurrent edit survive.

        No validation happens here; invalid values surface at commit.

        Raises:
            LifecycleError: If the draft is committed or rejected
            InvalidPatchError: If the patch names unknown fields
        """
        current = self._load(draft, "edit")

        patch = from_wire(patch)
        unknown = unknown_fields(patch)
        if unknown:
            raise InvalidPatchError(unknown)

        saved = self.repository.merge_manual(current.draft_id, patch, updated_at=self.clock())
        logger.info(
            "Draft edited",
            extra={"draft_id": saved.draft_id, "status": saved.status, "fields": sorted(patch)},
        )
        return saved

    def effective_record(self, draft: Draft) -> dict[str, Any]:
        return merge(draft.parsed, draft.normalized, draft.manual)

    def validate(self, draft: Draft) -> ValidationResult:
        """Dry-run validation of the draft's effective record; no state change."""
        return validate(
            self.effective_record(draft),
            policy=self.policy,
            today=self.clock().date(),
        )

    def commit(self, draft: Draft, *, actor: str | None = None) -> CommitOutcome:
        """
        Validate the effective record and, if valid, commit it as a reservation.

        An invalid record is not an exception: the outcome has committed=False
        and the draft is left as it was.

        Raises:
            LifecycleError: If the draft is already committed or rejected,
                including when a concurrent commit wins the race
                or when a manual edit lands while the commit is prepared
            ReservationConflictError: If the reservation number is already used
        """
        current = self._load(draft, "commit")

        with metrics.track_duration(metrics.commit_duration_seconds), \
                log_operation("commit draft", logger=logger, draft_id=current.draft_id):
            record = self.effective_record(current)
            result = validate(record, policy=self.policy, today=self.clock().date())
            metrics.record_validation(
                {"schema": result.summary.schema_errors, "business": result.summary.business_errors},
                result.flags,
            )

            if not result.valid:
                metrics.increment_counter(metrics.commits_total, outcome="rejected_validation")
                logger.info(
                    "Commit refused by validation",
                    extra={"draft_id": current.draft_id, "errors": result.error_paths},
                )
                return CommitOutcome(committed=False, draft=current, validation=result)

            # The audit records the guess as received, "NOW()" tokens included
            changes = diff(to_wire(current.parsed), record)
            reservation = Reservation.from_effective_record(current.draft_id, record, result.flags)
            audit = ReservationAudit(
                draft_id=current.draft_id,
                actor=actor,
                diff=changes,
                summary=summarize(changes),
                created_at=self.clock(),
            )

            current.append_flags(result.flags)
            current.status = "committed"
            current.touch(self.clock())

            stored_draft, stored_reservation, stored_audit = self.repository.commit(
                current, reservation, audit
            )

        metrics.increment_counter(metrics.commits_total, outcome="committed")
        logger.info(
            "Draft committed",
            extra={
                "draft_id": stored_draft.draft_id,
                "reservation_id": stored_reservation.reservation_id,
                "flags": result.flags,
            },
        )
        return CommitOutcome(
            committed=True,
            draft=stored_draft,
            validation=result,
            reservation=stored_reservation,
            audit=stored_audit,
        )

    def reject(self, draft: Draft, reason: str) -> Draft:
        """
        Reject the draft (terminal).

        Raises:
            LifecycleError: If the draft is already committed or rejected
        """
        current = self._load(draft, "reject")
        current.status = "rejected"
        current.rejection_reason = reason
        saved = self._save(current, "Draft rejected")
        metrics.increment_counter(metrics.drafts_rejected_total)
        return saved

    def _load(self, draft: Draft, operation: str) -> Draft:
        current = self.repository.get_draft(draft.draft_id)
        if current.is_terminal:
            raise LifecycleError(operation, current.draft_id, current.status)
        return current

    def _save(self, draft: Draft, message: str, **extra) -> Draft:
        draft.touch(self.clock())
        saved = self.repository.update_draft(draft)
        logger.info(message, extra={"draft_id": saved.draft_id, "status": saved.status, **extra})
        return saved
