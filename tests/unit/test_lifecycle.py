"""
Unit tests for the draft lifecycle manager against the in-memory repository.
"""

import threading

import pytest

from draft_reconciler.core.errors import (
    DraftNotFoundError,
    InvalidPatchError,
    LifecycleError,
    ReservationConflictError,
)
from draft_reconciler.core.lifecycle import DraftLifecycleManager
from draft_reconciler.core.models import PERSISTENCE_ASSIGNED, FieldDefinition, origin_hash_for
from draft_reconciler.core.normalization import normalize
from draft_reconciler.core.rules import ValidationPolicy
from draft_reconciler.warehouse.draft_repository import InMemoryDraftRepository


class ReadHookRepository(InMemoryDraftRepository):
    """In-memory repository that runs on_read after every get_draft, to interleave operations."""

    def __init__(self):
        super().__init__()
        self.on_read = None

    def get_draft(self, draft_id):
        draft = super().get_draft(draft_id)
        if self.on_read is not None:
            self.on_read()
        return draft


@pytest.fixture
def hooked_repository():
    return ReadHookRepository()


@pytest.fixture
def hooked_manager(hooked_repository, clock, sequential_numbers):
    return DraftLifecycleManager(
        hooked_repository,
        normalizer=lambda parsed: normalize(parsed, reservation_number_factory=sequential_numbers),
        clock=clock,
    )


@pytest.fixture
def normalized_draft(manager, complete_parsed):
    draft = manager.create("[NOL] 괌 돌핀 크루즈 2025-03-15 성인2 아동1")
    return manager.receive_parsed(draft, complete_parsed, confidence=0.9, notes="ok")


class TestCreate:
    """Tests for draft creation"""

    def test_create_assigns_id_and_status(self, manager, repository, clock):
        draft = manager.create("raw booking text")

        assert draft.draft_id == 1
        assert draft.status == "draft"
        assert draft.parsed is None
        assert draft.created_at == clock()
        assert repository.get_draft(1).raw_text == "raw booking text"

    @pytest.mark.parametrize("raw_text", ["", "   ", None])
    def test_blank_text_rejected(self, manager, raw_text):
        with pytest.raises(ValueError):
            manager.create(raw_text)

    def test_origin_hash_recorded(self, manager, repository):
        draft = manager.create("  [NOL] 괌 돌핀 크루즈\n")

        assert draft.origin_hash == origin_hash_for("[NOL] 괌 돌핀 크루즈")
        assert repository.get_draft(draft.draft_id).origin_hash == draft.origin_hash

    def test_resubmitted_text_is_found_not_blocked(self, manager):
        first = manager.create("[NOL] 괌 돌핀 크루즈")
        other = manager.create("[KLOOK] Guam snorkel")
        second = manager.create("[NOL] 괌 돌핀 크루즈 ")

        assert second.draft_id != first.draft_id
        assert [draft.draft_id for draft in manager.find_duplicates("[NOL] 괌 돌핀 크루즈")] == [
            first.draft_id, second.draft_id,
        ]
        assert [draft.draft_id for draft in manager.find_duplicates("[KLOOK] Guam snorkel")] == [other.draft_id]
        assert manager.find_duplicates("never seen") == []

    def test_policy_field_definitions_drive_normalization(self, repository, clock):
        policy = ValidationPolicy(field_definitions=[
            FieldDefinition(key="pickup_time", type="time"),
            FieldDefinition(key="dietary", type="multiselect", options=["vegan", "halal"]),
        ])
        manager = DraftLifecycleManager(repository, policy=policy, clock=clock)

        draft = manager.receive_parsed(
            manager.create("text"),
            {"extras": {"pickup_time": "오후 2시", "dietary": "vegan, halal", "note": " as is "}},
        )

        assert draft.normalized["extras"] == {"pickup_time": "14:00", "dietary": ["vegan", "halal"], "note": " as is "}
        assert manager.validate(draft).valid


class TestReceiveParsed:
    """Tests for receive_parsed"""

    def test_stores_parsed_and_normalized(self, normalized_draft, complete_parsed):
        assert normalized_draft.status == "normalized"
        assert normalized_draft.parsed == complete_parsed
        assert normalized_draft.normalized["guest_count"] == 3
        assert normalized_draft.normalized["payment_status"] == "confirmed"
        assert normalized_draft.confidence == 0.9
        assert normalized_draft.extracted_notes == "ok"

    def test_parsed_written_once(self, manager, normalized_draft):
        with pytest.raises(LifecycleError, match="already has a parsed document"):
            manager.receive_parsed(normalized_draft, {"adults": 5})

    def test_input_not_mutated(self, manager):
        parsed = {"adults": "2명"}
        manager.receive_parsed(manager.create("text"), parsed)
        assert parsed == {"adults": "2명"}

    def test_empty_guess_gets_synthesized_number(self, manager):
        draft = manager.receive_parsed(manager.create("text"), {})
        assert draft.normalized["reservation_number"] == "AUTO_TEST_0001"

    def test_edit_before_parse_keeps_reviewed_status(self, manager):
        draft = manager.apply_manual_edit(manager.create("text"), {"memo": "call first"})
        draft = manager.receive_parsed(draft, {"adults": 2})
        assert draft.status == "reviewed"
        assert draft.manual == {"memo": "call first"}

    def test_legacy_now_token_in_parsed_guess(self, manager):
        draft = manager.receive_parsed(manager.create("text"), {"adults": 2, "created_at": "NOW()"})

        assert draft.parsed["created_at"] is PERSISTENCE_ASSIGNED
        assert "created_at" not in manager.effective_record(draft)

    def test_parse_result_keeps_edit_made_meanwhile(self, hooked_manager, hooked_repository):
        draft = hooked_manager.create("text")

        def edit_once():
            hooked_repository.on_read = None
            hooked_manager.apply_manual_edit(draft, {"memo": "call first"})

        hooked_repository.on_read = edit_once
        hooked_manager.receive_parsed(draft, {"adults": 2})

        stored = hooked_repository.get_draft(draft.draft_id)
        assert stored.manual == {"memo": "call first"}
        assert stored.normalized["adults"] == 2

    def test_renormalize(self, manager, normalized_draft):
        draft = manager.renormalize(normalized_draft)
        assert draft.normalized["guest_count"] == 3

    def test_renormalize_without_parsed(self, manager):
        with pytest.raises(LifecycleError):
            manager.renormalize(manager.create("text"))


class TestManualEdit:
    """Tests for apply_manual_edit"""

    def test_edit_moves_to_reviewed(self, manager, normalized_draft):
        draft = manager.apply_manual_edit(normalized_draft, {"payment_status": "pending"})
        assert draft.status == "reviewed"
        assert draft.manual == {"payment_status": "pending"}

    def test_edits_accumulate_last_writer_wins(self, manager, normalized_draft):
        manager.apply_manual_edit(normalized_draft, {"memo": "a", "adults": 3})
        draft = manager.apply_manual_edit(normalized_draft, {"memo": "b"})
        assert draft.manual == {"memo": "b", "adults": 3}

    def test_invalid_values_are_accepted_until_commit(self, manager, normalized_draft):
        draft = manager.apply_manual_edit(normalized_draft, {"adults": "lots"})
        assert draft.manual["adults"] == "lots"
        assert not manager.validate(draft).valid

    def test_unknown_field_rejected(self, manager, normalized_draft):
        with pytest.raises(InvalidPatchError) as exc_info:
            manager.apply_manual_edit(normalized_draft, {"favourite_colour": "red"})
        assert exc_info.value.unknown_fields == ["favourite_colour"]

    def test_legacy_now_token(self, manager, normalized_draft):
        draft = manager.apply_manual_edit(normalized_draft, {"updated_at": "NOW()"})
        assert draft.manual["updated_at"] is PERSISTENCE_ASSIGNED
        assert "updated_at" not in manager.effective_record(draft)

    def test_caller_copy_not_mutated(self, manager, normalized_draft):
        manager.apply_manual_edit(normalized_draft, {"memo": "x"})
        assert normalized_draft.manual == {}
        assert normalized_draft.status == "normalized"

    def test_concurrent_disjoint_edits_keep_every_key(self, hooked_manager, hooked_repository, complete_parsed):
        draft = hooked_manager.receive_parsed(hooked_manager.create("text"), complete_parsed)
        errors = []
        # both editors read the same draft before either writes
        read_barrier = threading.Barrier(2)
        hooked_repository.on_read = lambda: read_barrier.wait(timeout=5)

        def edit(patch):
            try:
                hooked_manager.apply_manual_edit(draft, patch)
            except Exception as e:
                errors.append(e)

        threads = [
            threading.Thread(target=edit, args=({"memo": "A"},)),
            threading.Thread(target=edit, args=({"kakao_id": "B"},)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        hooked_repository.on_read = None

        assert errors == []
        stored = hooked_repository.get_draft(draft.draft_id)
        assert stored.manual == {"memo": "A", "kakao_id": "B"}
        assert stored.status == "reviewed"


class TestCommit:
    """Tests for commit"""

    def test_valid_commit(self, manager, repository, normalized_draft):
        manager.apply_manual_edit(normalized_draft, {"memo": "VIP"})
        outcome = manager.commit(normalized_draft, actor="reviewer")

        assert outcome.committed
        assert outcome.draft.status == "committed"
        assert outcome.draft.reservation_id == outcome.reservation.reservation_id
        assert outcome.reservation.reservation_number == "NOL-88231"
        assert outcome.reservation.data["memo"] == "VIP"
        assert outcome.audit.actor == "reviewer"
        assert outcome.audit.reservation_id == outcome.reservation.reservation_id
        assert repository.count_reservations() == 1

    def test_audit_diff_runs_from_parsed_to_committed(self, manager, normalized_draft):
        outcome = manager.commit(normalized_draft)

        changes = outcome.audit.diff
        assert changes["payment_status"] == {"action": "changed", "old": "예약확정", "new": "confirmed"}
        assert changes["guest_count"] == {"action": "added", "new": 3}
        assert 'Changed payment_status: "예약확정" -> "confirmed"' in outcome.audit.summary

    def test_invalid_commit_leaves_draft_alone(self, manager, repository, normalized_draft):
        manager.apply_manual_edit(normalized_draft, {"guest_count": 1})
        outcome = manager.commit(normalized_draft)

        assert not outcome.committed
        assert outcome.reservation is None
        assert outcome.validation.error_paths == ["/guest_count"]
        assert repository.get_draft(normalized_draft.draft_id).status == "reviewed"
        assert repository.count_reservations() == 0

    def test_flags_persisted_with_reservation(self, manager, normalized_draft):
        manager.apply_manual_edit(normalized_draft, {"email": None, "phone": None})
        outcome = manager.commit(normalized_draft)

        assert outcome.committed
        assert outcome.reservation.flags == ["missing_contact"]
        assert "missing_contact" in outcome.draft.flags

    def test_double_commit_fails(self, manager, normalized_draft):
        manager.commit(normalized_draft)
        with pytest.raises(LifecycleError) as exc_info:
            manager.commit(normalized_draft)
        assert exc_info.value.status == "committed"

    def test_commit_without_parsed_guess(self, manager):
        """A draft the oracle never filled can still be completed by hand"""
        draft = manager.apply_manual_edit(manager.create("text"), {"reservation_number": "MANUAL-1"})
        outcome = manager.commit(draft)
        assert not outcome.committed
        assert "/guest_count" in outcome.validation.error_paths

        draft = manager.apply_manual_edit(draft, {
            "quantity": 1, "adults": 1, "children": 0, "infants": 0, "guest_count": 1,
            "payment_status": "pending", "code_issued": False,
        })
        outcome = manager.commit(draft)

        assert outcome.committed
        assert outcome.audit.diff["reservation_number"] == {"action": "added", "new": "MANUAL-1"}

    def test_reservation_number_conflict(self, manager, complete_parsed):
        first = manager.receive_parsed(manager.create("one"), complete_parsed)
        second = manager.receive_parsed(manager.create("two"), complete_parsed)

        manager.commit(first)
        with pytest.raises(ReservationConflictError):
            manager.commit(second)

    def test_policy_required_usage_date(self, repository, clock, normalized_draft):
        strict = DraftLifecycleManager(
            repository,
            policy=ValidationPolicy(required_fields=["reservation_number", "usage_date"]),
            clock=clock,
        )
        strict.apply_manual_edit(normalized_draft, {"usage_date": None})

        outcome = strict.commit(normalized_draft)

        assert not outcome.committed
        assert "/usage_date" in outcome.validation.error_paths

    def test_edit_during_commit_refuses_stale_commit(self, hooked_manager, hooked_repository, complete_parsed):
        draft = hooked_manager.receive_parsed(hooked_manager.create("text"), complete_parsed)

        def edit_once():
            hooked_repository.on_read = None
            hooked_manager.apply_manual_edit(draft, {"memo": "late change"})

        hooked_repository.on_read = edit_once
        with pytest.raises(LifecycleError, match="edited while the commit was prepared"):
            hooked_manager.commit(draft)

        assert hooked_repository.count_reservations() == 0
        assert hooked_manager.commit(draft).reservation.data["memo"] == "late change"

    def test_concurrent_commits_create_one_reservation(self, manager, repository, normalized_draft):
        results = []
        barrier = threading.Barrier(4)

        def attempt():
            barrier.wait()
            try:
                results.append(manager.commit(normalized_draft).committed)
            except LifecycleError:
                results.append("lost")

        threads = [threading.Thread(target=attempt) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert results.count("lost") == 3
        assert repository.count_reservations() == 1


class TestReject:
    """Tests for reject and terminal states"""

    def test_reject(self, manager, normalized_draft):
        draft = manager.reject(normalized_draft, "duplicate booking")
        assert draft.status == "rejected"
        assert draft.rejection_reason == "duplicate booking"

    @pytest.mark.parametrize("operation", ["edit", "commit", "reject", "receive"])
    def test_terminal_drafts_refuse_operations(self, manager, operation):
        draft = manager.reject(manager.create("text"), "spam")

        with pytest.raises(LifecycleError):
            if operation == "edit":
                manager.apply_manual_edit(draft, {"memo": "x"})
            elif operation == "commit":
                manager.commit(draft)
            elif operation == "reject":
                manager.reject(draft, "again")
            else:
                manager.receive_parsed(draft, {})

    def test_committed_draft_cannot_be_rejected(self, manager, normalized_draft):
        manager.commit(normalized_draft)
        with pytest.raises(LifecycleError):
            manager.reject(normalized_draft, "too late")


class TestRepository:
    """In-memory repository behaviour the manager relies on"""

    def test_unknown_draft(self, repository):
        with pytest.raises(DraftNotFoundError):
            repository.get_draft(999)

    def test_returned_drafts_are_copies(self, repository, manager):
        draft = manager.create("text")
        draft.manual["memo"] = "local only"
        assert repository.get_draft(draft.draft_id).manual == {}

    def test_find_reservation_by_draft(self, manager, repository, normalized_draft):
        outcome = manager.commit(normalized_draft)
        found = repository.find_reservation_by_draft(normalized_draft.draft_id)
        assert found == outcome.reservation
        assert repository.list_audits(found.reservation_id) == [outcome.audit]
        assert repository.find_reservation_by_draft(12345) is None
