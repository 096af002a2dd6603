"""Submission history and PNC reconciliation endpoints."""

from datetime import date, datetime, time, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.dependencies import get_db, get_reconciliation_worker
from pn_filer.errors import ConfigurationError
from pn_filer.models.submission import SubmissionStatus
from pn_filer.reconciliation_worker.service import ReconciliationResult, ReconciliationWorker
from pn_filer.schemas.submission import (
    ReconcileItemResponse,
    ReconcilePendingRequest,
    ReconcileRequest,
    ReconcileResponse,
    SubmissionListResponse,
    SubmissionResponse,
)
from pn_filer.stores.submissions import SubmissionStore

router = APIRouter()


def _day_start(value: date | None) -> datetime | None:
    if value is None:
        return None
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


@router.get("", response_model=SubmissionListResponse)
async def list_submissions(
    search: str = "",
    status: SubmissionStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: AsyncSession = Depends(get_db),
) -> SubmissionListResponse:
    """Search submission history, newest first."""
    submissions = await SubmissionStore().search(
        db,
        search=search.strip(),
        status=status,
        start_date=_day_start(start_date),
        end_date=_day_start(end_date),
    )
    return SubmissionListResponse(
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
        total=len(submissions),
    )


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_submissions(
    request: ReconcileRequest,
    http_request: Request,
    db: AsyncSession = Depends(get_db),
    worker: ReconciliationWorker = Depends(get_reconciliation_worker),
) -> ReconcileResponse:
    """Fetch PNC numbers for the given submissions."""
    try:
        result = await worker.reconcile(db, request.submission_ids)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    _log_context(http_request, result)
    return _to_response(result)


@router.post("/reconcile/pending", response_model=ReconcileResponse)
async def reconcile_pending(
    http_request: Request,
    request: ReconcilePendingRequest | None = None,
    db: AsyncSession = Depends(get_db),
    worker: ReconciliationWorker = Depends(get_reconciliation_worker),
) -> ReconcileResponse:
    """Fetch PNC numbers for the oldest submissions still awaiting one."""
    limit = request.limit if request else None
    try:
        result = await worker.reconcile_pending(db, limit)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    _log_context(http_request, result)
    return _to_response(result)


def _log_context(http_request: Request, result: ReconciliationResult) -> None:
    http_request.state.log_context = {
        "queried": result.total,
        "pnc_received": result.successful,
        "unresolved": result.failed,
    }


def _to_response(result: ReconciliationResult) -> ReconcileResponse:
    return ReconcileResponse(
        total=result.total,
        successful=result.successful,
        failed=result.failed,
        results=[
            ReconcileItemResponse(
                submission_id=r.submission_id,
                order_name=r.order_name,
                tracking_number=r.tracking_number,
                success=r.success,
                outcome=r.outcome,
                pnc_number=r.pnc_number,
                message=r.message,
            )
            for r in result.results
        ],
    )
