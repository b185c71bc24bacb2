"""
PostgreSQL adapter for the draft repository.

Documents are stored verbatim as JSONB. The commit critical section is a
single transaction that locks the draft row with SELECT ... FOR UPDATE.
Manual patches are merged in SQL (manual || patch) under the same row lock.
"""

import json
from datetime import datetime
from typing import Any

from psycopg import errors as pg_errors

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
from draft_reconciler.core.models.fields import from_wire, to_wire
from draft_reconciler.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .draft_repository import DraftRepository

logger = get_logger(__name__)

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS drafts (
    draft_id         BIGSERIAL PRIMARY KEY,
    raw_text         TEXT NOT NULL,
    origin_hash      VARCHAR(64),
    parsed           JSONB,
    normalized       JSONB,
    manual           JSONB NOT NULL DEFAULT '{}'::jsonb,
    flags            JSONB NOT NULL DEFAULT '[]'::jsonb,
    confidence       DOUBLE PRECISION CHECK (confidence BETWEEN 0 AND 1),
    extracted_notes  TEXT,
    status           VARCHAR(20) NOT NULL DEFAULT 'draft'
                     CHECK (status IN ('draft', 'normalized', 'reviewed', 'committed', 'rejected')),
    reservation_id   BIGINT,
    rejection_reason TEXT,
    created_at       TIMESTAMP NOT NULL DEFAULT NOW(),
    updated_at       TIMESTAMP NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS reservations (
    reservation_id     BIGSERIAL PRIMARY KEY,
    draft_id           BIGINT NOT NULL UNIQUE REFERENCES drafts (draft_id),
    reservation_number VARCHAR(255) NOT NULL UNIQUE,
    data               JSONB NOT NULL,
    extras             JSONB NOT NULL DEFAULT '{}'::jsonb,
    flags              JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at         TIMESTAMP NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS reservation_audits (
    audit_id       BIGSERIAL PRIMARY KEY,
    reservation_id BIGINT NOT NULL REFERENCES reservations (reservation_id),
    draft_id       BIGINT NOT NULL,
    action         VARCHAR(20) NOT NULL,
    actor          VARCHAR(255),
    diff           JSONB NOT NULL,
    summary        JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at     TIMESTAMP NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_drafts_status ON drafts (status);
CREATE INDEX IF NOT EXISTS idx_drafts_origin_hash ON drafts (origin_hash);
CREATE INDEX IF NOT EXISTS idx_reservation_audits_reservation ON reservation_audits (reservation_id);
"""

_DRAFT_COLUMNS = """
    draft_id, raw_text, origin_hash, parsed, normalized, manual, flags, confidence,
    extracted_notes, status, reservation_id, rejection_reason, created_at, updated_at
"""


def ensure_schema(pool: DatabaseConnectionPool) -> None:
    """Create the draft, reservation and audit tables if they do not exist."""
    pool.execute_command(SCHEMA_DDL)


def _jsonb(document: Any) -> str | None:
    if document is None:
        return None
    if isinstance(document, dict):
        document = to_wire(document)
    return json.dumps(document, ensure_ascii=False, default=str)


def _document_from_row(document: dict[str, Any] | None) -> dict[str, Any] | None:
    return None if document is None else from_wire(document)


def _row_to_draft(row: dict[str, Any]) -> Draft:
    return Draft(
        draft_id=row["draft_id"],
        raw_text=row["raw_text"],
        origin_hash=row["origin_hash"],
        parsed=_document_from_row(row["parsed"]),
        normalized=_document_from_row(row["normalized"]),
        manual=from_wire(row["manual"]),
        flags=row["flags"] or [],
        confidence=row["confidence"],
        extracted_notes=row["extracted_notes"],
        status=row["status"],
        reservation_id=row["reservation_id"],
        rejection_reason=row["rejection_reason"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _draft_params(draft: Draft) -> tuple:
    return (
        _jsonb(draft.parsed),
        _jsonb(draft.normalized),
        _jsonb(draft.flags),
        draft.confidence,
        draft.extracted_notes,
        draft.status,
        draft.reservation_id,
        draft.rejection_reason,
        draft.updated_at,
    )


class PostgresDraftRepository(DraftRepository):
    """
    Draft repository backed by PostgreSQL through a DatabaseConnectionPool.

    Run ensure_schema(pool) once before use.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def add_draft(self, draft: Draft) -> Draft:
        rows = self.pool.execute_query(
            f"""
            INSERT INTO drafts (
                raw_text, origin_hash, manual, parsed, normalized, flags, confidence,
                extracted_notes, status, reservation_id, rejection_reason,
                updated_at, created_at
            )
            VALUES (%s, %s, %s::jsonb, %s::jsonb, %s::jsonb, %s::jsonb, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_DRAFT_COLUMNS}
            """,
            (draft.raw_text, draft.origin_hash, _jsonb(draft.manual), *_draft_params(draft), draft.created_at),
        )
        return _row_to_draft(rows[0])

    def get_draft(self, draft_id: int) -> Draft:
        rows = self.pool.execute_query(
            f"SELECT {_DRAFT_COLUMNS} FROM drafts WHERE draft_id = %s",
            (draft_id,),
        )
        if not rows:
            raise DraftNotFoundError(draft_id)
        return _row_to_draft(rows[0])

    def find_drafts_by_origin(self, origin_hash: str) -> list[Draft]:
        rows = self.pool.execute_query(
            f"SELECT {_DRAFT_COLUMNS} FROM drafts WHERE origin_hash = %s ORDER BY draft_id",
            (origin_hash,),
        )
        return [_row_to_draft(row) for row in rows]

    def update_draft(self, draft: Draft) -> Draft:
        with self.pool.get_connection() as conn:
            with conn.transaction(), conn.cursor() as cur:
                self._lock_open_draft(cur, draft.draft_id, "update")
                cur.execute(
                    f"""
                    UPDATE drafts SET
                        parsed = %s::jsonb, normalized = %s::jsonb,
                        flags = %s::jsonb, confidence = %s, extracted_notes = %s,
                        status = %s, reservation_id = %s, rejection_reason = %s,
                        updated_at = %s
                    WHERE draft_id = %s
                    RETURNING {_DRAFT_COLUMNS}
                    """,
                    (*_draft_params(draft), draft.draft_id),
                )
                return _row_to_draft(cur.fetchone())

    def merge_manual(self, draft_id: int, patch: dict[str, Any], *, updated_at: datetime) -> Draft:
        with self.pool.get_connection() as conn:
            with conn.transaction(), conn.cursor() as cur:
                self._lock_open_draft(cur, draft_id, "edit")
                cur.execute(
                    f"""
                    UPDATE drafts SET
                        manual = manual || %s::jsonb, status = 'reviewed', updated_at = %s
                    WHERE draft_id = %s
                    RETURNING {_DRAFT_COLUMNS}
                    """,
                    (_jsonb(patch), updated_at, draft_id),
                )
                return _row_to_draft(cur.fetchone())

    def commit(
        self,
        draft: Draft,
        reservation: Reservation,
        audit: ReservationAudit,
    ) -> tuple[Draft, Reservation, ReservationAudit]:
        try:
            with self.pool.get_connection() as conn:
                with conn.transaction(), conn.cursor() as cur:
                    locked = self._lock_open_draft(cur, draft.draft_id, "commit")
                    if from_wire(locked["manual"]) != draft.manual:
                        raise LifecycleError(
                            "commit", draft.draft_id, locked["status"],
                            f"Draft {draft.draft_id} was edited while the commit was prepared",
                        )

                    cur.execute(
                        """
                        INSERT INTO reservations (
                            draft_id, reservation_number, data, extras, flags, created_at
                        )
                        VALUES (%s, %s, %s::jsonb, %s::jsonb, %s::jsonb, %s)
                        RETURNING reservation_id
                        """,
                        (
                            reservation.draft_id,
                            reservation.reservation_number,
                            _jsonb(reservation.data),
                            _jsonb(reservation.extras),
                            _jsonb(reservation.flags),
                            reservation.created_at,
                        ),
                    )
                    reservation_id = cur.fetchone()["reservation_id"]

                    cur.execute(
                        """
                        INSERT INTO reservation_audits (
                            reservation_id, draft_id, action, actor, diff, summary, created_at
                        )
                        VALUES (%s, %s, %s, %s, %s::jsonb, %s::jsonb, %s)
                        RETURNING audit_id
                        """,
                        (
                            reservation_id,
                            audit.draft_id,
                            audit.action,
                            audit.actor,
                            _jsonb(audit.diff),
                            _jsonb(audit.summary),
                            audit.created_at,
                        ),
                    )
                    audit_id = cur.fetchone()["audit_id"]

                    committed = draft.model_copy(update={"reservation_id": reservation_id})
                    cur.execute(
                        f"""
                        UPDATE drafts SET
                            parsed = %s::jsonb, normalized = %s::jsonb,
                            flags = %s::jsonb, confidence = %s, extracted_notes = %s,
                            status = %s, reservation_id = %s, rejection_reason = %s,
                            updated_at = %s
                        WHERE draft_id = %s
                        RETURNING {_DRAFT_COLUMNS}
                        """,
                        (*_draft_params(committed), draft.draft_id),
                    )
                    stored_draft = _row_to_draft(cur.fetchone())
        except pg_errors.UniqueViolation as e:
            raise ReservationConflictError(reservation.reservation_number, cause=e) from e

        return (
            stored_draft,
            reservation.model_copy(update={"reservation_id": reservation_id}),
            audit.model_copy(update={"audit_id": audit_id, "reservation_id": reservation_id}),
        )

    def get_reservation(self, reservation_id: int) -> Reservation | None:
        rows = self.pool.execute_query(
            "SELECT * FROM reservations WHERE reservation_id = %s",
            (reservation_id,),
        )
        return Reservation(**rows[0]) if rows else None

    def find_reservation_by_draft(self, draft_id: int) -> Reservation | None:
        rows = self.pool.execute_query(
            "SELECT * FROM reservations WHERE draft_id = %s",
            (draft_id,),
        )
        return Reservation(**rows[0]) if rows else None

    def list_audits(self, reservation_id: int) -> list[ReservationAudit]:
        rows = self.pool.execute_query(
            "SELECT * FROM reservation_audits WHERE reservation_id = %s ORDER BY audit_id",
            (reservation_id,),
        )
        return [ReservationAudit(**row) for row in rows]

    def _lock_open_draft(self, cur, draft_id: int | None, operation: str) -> dict[str, Any]:
        """Lock the draft row for this transaction; refuse if it is already terminal."""
        cur.execute(
            "SELECT status, manual FROM drafts WHERE draft_id = %s FOR UPDATE",
            (draft_id,),
        )
        row = cur.fetchone()
        if row is None:
            raise DraftNotFoundError(draft_id)
        if row["status"] in TERMINAL_STATUSES:
            logger.warning(
                "Refused write to terminal draft",
                extra={"draft_id": draft_id, "status": row["status"], "operation": operation},
            )
            raise LifecycleError(operation, draft_id, row["status"])
        return row
