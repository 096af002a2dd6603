"""
ReconciliationWorker: fetch PNC numbers for submitted filings.

Status queries go out in small concurrent batches; the resulting record
updates are applied afterwards, one at a time and in input order, since
a session cannot be shared across concurrent tasks.

Two guards keep a submission from being stamped twice: a per-id lock
serialises status queries for the same id within this process, and the
store's conditional update only succeeds while the PNC is still empty.
"""

import asyncio
import logging
import uuid
import weakref
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.audit.service import AuditService
from pn_filer.config import Settings
from pn_filer.models.submission import Submission
from pn_filer.services.customscity_client import CustomsCityClient, StatusOutcome, StatusResult
from pn_filer.stores.submissions import SubmissionStore

logger = logging.getLogger("pnfiler.reconciliation")

_submission_locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = weakref.WeakValueDictionary()


def submission_lock(submission_id: uuid.UUID) -> asyncio.Lock:
    lock = _submission_locks.get(submission_id)
    if lock is None:
        lock = asyncio.Lock()
        _submission_locks[submission_id] = lock
    return lock


@dataclass
class ReconcileItemResult:
    submission_id: str
    order_name: str
    tracking_number: str
    success: bool
    outcome: StatusOutcome
    pnc_number: str | None = None
    message: str = ""


@dataclass
class ReconciliationResult:
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: list[ReconcileItemResult] = field(default_factory=list)


class ReconciliationWorker:
    def __init__(
        self,
        settings: Settings,
        client: CustomsCityClient,
        store: SubmissionStore | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.store = store or SubmissionStore()
        self.batch_size = max(1, settings.reconcile_batch_size)
        self.batch_delay = settings.reconcile_batch_delay_seconds
        self.default_limit = settings.reconcile_default_limit
        self.format_version = settings.filing_format_version
        self.sleep = sleep

    async def reconcile(self, db: AsyncSession, submission_ids: list[uuid.UUID]) -> ReconciliationResult:
        """Query PNC status for the given submissions.

        Ids without a stored document id, or already confirmed, are not
        queried and do not appear in the result.
        """
        self.client.ensure_configured()
        records = await self.store.select_for_reconciliation(db, submission_ids)
        return await self._run(db, records)

    async def reconcile_pending(self, db: AsyncSession, limit: int | None = None) -> ReconciliationResult:
        """Query PNC status for the oldest submitted records still awaiting one."""
        self.client.ensure_configured()
        records = await self.store.select_pending(db, limit or self.default_limit)
        return await self._run(db, records)

    async def _query(self, record: Submission) -> StatusResult:
        # Rows written before the format was recorded use the configured one
        format_version = record.format_version or self.format_version.value
        async with submission_lock(record.id):
            try:
                return await self.client.fetch_status(record.document_id, format_version)
            except Exception as e:
                logger.exception("Status query for %s raised", record.order_name)
                return StatusResult(StatusOutcome.UPSTREAM_ERROR, message=f"Status query failed: {e}")

    async def _run(self, db: AsyncSession, records: list[Submission]) -> ReconciliationResult:
        result = ReconciliationResult(total=len(records))

        for start in range(0, len(records), self.batch_size):
            if start > 0:
                await self.sleep(self.batch_delay)

            batch = records[start:start + self.batch_size]
            statuses = await asyncio.gather(*(self._query(r) for r in batch))

            for record, status in zip(batch, statuses):
                item = await self._apply(db, record, status)
                result.results.append(item)
                if item.success:
                    result.successful += 1
                else:
                    result.failed += 1

        if records:
            await AuditService.log_event(
                db,
                event_type="PNC_RECONCILED",
                entity_type="submission_batch",
                event_data={
                    "total": result.total,
                    "successful": result.successful,
                    "failed": result.failed,
                },
            )
        logger.info(
            "Reconciled %d of %d submissions", result.successful, result.total
        )
        return result

    async def _apply(self, db: AsyncSession, record: Submission, status: StatusResult) -> ReconcileItemResult:
        item = ReconcileItemResult(
            submission_id=str(record.id),
            order_name=record.order_name,
            tracking_number=record.tracking_number,
            success=False,
            outcome=status.outcome,
            message=status.message,
        )

        if status.outcome == StatusOutcome.UPSTREAM_ERROR:
            logger.warning("Status query failed for %s: %s", record.order_name, status.message)
            return item
        if status.outcome == StatusOutcome.NOT_YET_AVAILABLE:
            logger.info("PNC not yet available for %s", record.order_name)
            return item

        stamped = await self.store.mark_pnc_received(
            db, record.id, status.pnc_number, datetime.now(timezone.utc)
        )
        if stamped:
            item.message = "PNC received"
        else:
            await db.refresh(record)
            item.message = "PNC already recorded"
        item.success = True
        item.pnc_number = record.pnc_number or status.pnc_number
        return item
