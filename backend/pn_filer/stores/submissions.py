"""
SubmissionStore: persisted submission records.

Append-mostly: rows are inserted once per order+tracking pair (duplicates
skipped on conflict). A row is updated in place only when a Failed filing
is retried or when a PNC number arrives. Both updates are conditional on
the row's current state (still Failed, or PNC still empty), so two callers
racing on the same row cannot both win.
"""

import uuid
from datetime import datetime, time

from sqlalchemy import or_, select, tuple_, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.errors import ConfigurationError
from pn_filer.models.submission import Submission, SubmissionStatus

SEARCH_LIMIT = 1000

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SubmissionStore:
    async def insert_skip_conflicts(self, db: AsyncSession, rows: list[dict]) -> None:
        """Insert submission rows, ignoring any order+tracking pair already stored."""
        if not rows:
            return
        dialect = db.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise ConfigurationError(f"Database dialect '{dialect}' is not supported for submission storage")

        stmt = insert(Submission).on_conflict_do_nothing(
            index_elements=["order_name", "tracking_number"]
        )
        await db.execute(stmt, [{"id": uuid.uuid4(), **row} for row in rows])
        await db.flush()

    async def get_by_keys(
        self, db: AsyncSession, keys: list[tuple[str, str]]
    ) -> dict[tuple[str, str], Submission]:
        if not keys:
            return {}
        result = await db.execute(
            select(Submission).where(
                tuple_(Submission.order_name, Submission.tracking_number).in_(keys)
            )
        )
        return {(s.order_name, s.tracking_number): s for s in result.scalars().all()}

    async def select_for_reconciliation(
        self, db: AsyncSession, submission_ids: list[uuid.UUID]
    ) -> list[Submission]:
        """Rows awaiting a PNC among the given ids, in the order requested."""
        if not submission_ids:
            return []
        result = await db.execute(
            select(Submission).where(
                Submission.id.in_(submission_ids),
                Submission.document_id.is_not(None),
                Submission.pnc_number.is_(None),
            )
        )
        by_id = {s.id: s for s in result.scalars().all()}
        return [by_id[i] for i in dict.fromkeys(submission_ids) if i in by_id]

    async def select_pending(
        self,
        db: AsyncSession,
        limit: int,
        status: SubmissionStatus = SubmissionStatus.SUBMITTED,
    ) -> list[Submission]:
        """Oldest rows with the given status still awaiting a PNC."""
        result = await db.execute(
            select(Submission)
            .where(
                Submission.status == status,
                Submission.document_id.is_not(None),
                Submission.pnc_number.is_(None),
            )
            .order_by(Submission.submitted_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_pnc_received(
        self,
        db: AsyncSession,
        submission_id: uuid.UUID,
        pnc_number: str,
        retrieved_at: datetime,
    ) -> bool:
        """Stamp the PNC. Returns False when another caller already did."""
        result = await db.execute(
            update(Submission)
            .where(Submission.id == submission_id, Submission.pnc_number.is_(None))
            .values(
                pnc_number=pnc_number,
                status=SubmissionStatus.PNC_RECEIVED,
                pnc_retrieved_at=retrieved_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        # Refresh any copy already loaded in this session
        await db.get(Submission, submission_id, populate_existing=True)
        return True

    async def record_retry(
        self,
        db: AsyncSession,
        submission_id: uuid.UUID,
        document_id: str | None,
        error_message: str | None,
        submitted_at: datetime,
    ) -> bool:
        """Overwrite a Failed row with the outcome of a new filing attempt.

        A document id marks the row Submitted; without one it stays Failed
        with the new error. Returns False when the row is no longer Failed.
        """
        status = SubmissionStatus.SUBMITTED if document_id else SubmissionStatus.FAILED
        result = await db.execute(
            update(Submission)
            .where(Submission.id == submission_id, Submission.status == SubmissionStatus.FAILED)
            .values(
                document_id=document_id,
                status=status,
                error_message=None if document_id else error_message,
                submitted_at=submitted_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await db.get(Submission, submission_id, populate_existing=True)
        return True

    async def search(
        self,
        db: AsyncSession,
        search: str = "",
        status: SubmissionStatus | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Submission]:
        query = select(Submission)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Submission.order_name.ilike(pattern),
                    Submission.tracking_number.ilike(pattern),
                    Submission.pnc_number.ilike(pattern),
                )
            )
        if status is not None:
            query = query.where(Submission.status == status)
        if start_date is not None:
            query = query.where(Submission.submitted_at >= start_date)
        if end_date is not None:
            # Whole end day is included
            query = query.where(
                Submission.submitted_at <= datetime.combine(end_date.date(), time.max, end_date.tzinfo)
            )

        result = await db.execute(
            query.order_by(Submission.submitted_at.desc()).limit(SEARCH_LIMIT)
        )
        return list(result.scalars().all())
