"""
Draft storage interface and the in-memory adapter.

The repository owns the commit critical section: commit() must check that
the stored draft is not already terminal and write the reservation, the
audit entry and the committed draft as one atomic step.

The manual patch is only ever changed by merge_manual(), which merges per key
under the same guard, so concurrent reviewer edits never drop each other.
update_draft() and commit() leave the stored manual patch as it is.
"""

import copy
import itertools
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from draft_reconciler.core.errors import (
    DraftNotFoundError,
    LifecycleError,
    ReservationConflictError,
)
from draft_reconciler.core.models import (
    TERMINAL_STATUSES,
    Draft,
    Reservation,
    ReservationAudit,
)


class DraftRepository(ABC):
    """Persistence port used by the lifecycle manager."""

    @abstractmethod
    def add_draft(self, draft: Draft) -> Draft:
        """Insert a new draft and return it with draft_id assigned."""

    @abstractmethod
    def get_draft(self, draft_id: int) -> Draft:
        """
        Raises:
            DraftNotFoundError: If no draft has this id
        """

    @abstractmethod
    def find_drafts_by_origin(self, origin_hash: str) -> list[Draft]:
        """Drafts created from the same raw text, oldest first."""

    @abstractmethod
    def update_draft(self, draft: Draft) -> Draft:
        """
        Overwrite a non-terminal draft (last writer wins), except its manual patch.

        Raises:
            DraftNotFoundError: If the draft does not exist
            LifecycleError: If the stored draft is already committed or rejected
        """

    @abstractmethod
    def merge_manual(self, draft_id: int, patch: dict[str, Any], *, updated_at: datetime) -> Draft:
        """
        Atomically merge a patch into the stored manual document and mark the draft reviewed.

        Keys of the patch overwrite stored keys; keys it does not name are kept.

        Raises:
            DraftNotFoundError: If the draft does not exist
            LifecycleError: If the stored draft is already committed or rejected
        """

    @abstractmethod
    def commit(
        self,
        draft: Draft,
        reservation: Reservation,
        audit: ReservationAudit,
    ) -> tuple[Draft, Reservation, ReservationAudit]:
        """
        Atomically store the reservation and audit entry and mark the draft committed.

        draft is the already-transitioned draft (status "committed"); the
        adapter fills in reservation_id on all three records.

        Raises:
            LifecycleError: If the stored draft is already terminal (lost the race),
                or its manual patch changed since the draft was read
            ReservationConflictError: If the reservation number is taken
        """

    @abstractmethod
    def get_reservation(self, reservation_id: int) -> Reservation | None:
        pass

    @abstractmethod
    def find_reservation_by_draft(self, draft_id: int) -> Reservation | None:
        pass

    @abstractmethod
    def list_audits(self, reservation_id: int) -> list[ReservationAudit]:
        pass


class InMemoryDraftRepository(DraftRepository):
    """
    Thread-safe in-process repository.

    A single lock serializes all access; records are copied on the way in
    and out so callers never share state with the store.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._drafts: dict[int, Draft] = {}
        self._reservations: dict[int, Reservation] = {}
        self._audits: dict[int, list[ReservationAudit]] = {}
        self._draft_ids = itertools.count(1)
        self._reservation_ids = itertools.count(1)
        self._audit_ids = itertools.count(1)

    def add_draft(self, draft: Draft) -> Draft:
        with self._lock:
            stored = draft.model_copy(deep=True, update={"draft_id": next(self._draft_ids)})
            self._drafts[stored.draft_id] = stored
            return stored.model_copy(deep=True)

    def get_draft(self, draft_id: int) -> Draft:
        with self._lock:
            return self._require(draft_id).model_copy(deep=True)

    def find_drafts_by_origin(self, origin_hash: str) -> list[Draft]:
        with self._lock:
            return [
                draft.model_copy(deep=True)
                for _, draft in sorted(self._drafts.items())
                if draft.origin_hash == origin_hash
            ]

    def update_draft(self, draft: Draft) -> Draft:
        with self._lock:
            current = self._require(draft.draft_id)
            if current.status in TERMINAL_STATUSES:
                raise LifecycleError("update", draft.draft_id, current.status)
            stored = draft.model_copy(deep=True)
            stored.manual = copy.deepcopy(current.manual)
            self._drafts[draft.draft_id] = stored
            return stored.model_copy(deep=True)

    def merge_manual(self, draft_id: int, patch: dict[str, Any], *, updated_at: datetime) -> Draft:
        with self._lock:
            current = self._require(draft_id)
            if current.status in TERMINAL_STATUSES:
                raise LifecycleError("edit", draft_id, current.status)
            current.manual = {**current.manual, **copy.deepcopy(patch)}
            current.status = "reviewed"
            current.updated_at = updated_at
            return current.model_copy(deep=True)

    def commit(
        self,
        draft: Draft,
        reservation: Reservation,
        audit: ReservationAudit,
    ) -> tuple[Draft, Reservation, ReservationAudit]:
        with self._lock:
            current = self._require(draft.draft_id)
            if current.status in TERMINAL_STATUSES:
                raise LifecycleError("commit", draft.draft_id, current.status)
            if current.manual != draft.manual:
                raise LifecycleError(
                    "commit", draft.draft_id, current.status,
                    f"Draft {draft.draft_id} was edited while the commit was prepared",
                )

            if any(
                existing.reservation_number == reservation.reservation_number
                for existing in self._reservations.values()
            ):
                raise ReservationConflictError(reservation.reservation_number)

            reservation_id = next(self._reservation_ids)
            stored_reservation = reservation.model_copy(
                deep=True, update={"reservation_id": reservation_id}
            )
            stored_audit = audit.model_copy(
                deep=True,
                update={"audit_id": next(self._audit_ids), "reservation_id": reservation_id},
            )
            stored_draft = draft.model_copy(deep=True, update={"reservation_id": reservation_id})

            self._reservations[reservation_id] = stored_reservation
            self._audits.setdefault(reservation_id, []).append(stored_audit)
            self._drafts[draft.draft_id] = stored_draft

            return (
                stored_draft.model_copy(deep=True),
                stored_reservation.model_copy(deep=True),
                stored_audit.model_copy(deep=True),
            )

    def get_reservation(self, reservation_id: int) -> Reservation | None:
        with self._lock:
            reservation = self._reservations.get(reservation_id)
            return reservation.model_copy(deep=True) if reservation else None

    def find_reservation_by_draft(self, draft_id: int) -> Reservation | None:
        with self._lock:
            for reservation in self._reservations.values():
                if reservation.draft_id == draft_id:
                    return reservation.model_copy(deep=True)
            return None

    def list_audits(self, reservation_id: int) -> list[ReservationAudit]:
        with self._lock:
            return [audit.model_copy(deep=True) for audit in self._audits.get(reservation_id, [])]

    def count_reservations(self) -> int:
        with self._lock:
            return len(self._reservations)

    def _require(self, draft_id: int | None) -> Draft:
        draft = self._drafts.get(draft_id) if draft_id is not None else None
        if draft is None:
            raise DraftNotFoundError(draft_id)
        return draft
