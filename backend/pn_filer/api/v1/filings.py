"""Filing endpoints: submit to CustomsCity, export the flat file, parse order sheets."""

from fastapi import APIRouter, Depends, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.dependencies import get_db, get_submission_orchestrator
from pn_filer.document_builder import SkippedItem, parse_order_sheet
from pn_filer.errors import ConfigurationError, InvalidBatchError
from pn_filer.schemas.filing import (
    FilingRequest,
    FilingSubmitResponse,
    OrderIn,
    OrderLineIn,
    OrderSheetResponse,
    OrderSubmissionResponse,
    SkippedItemResponse,
)
from pn_filer.submission_orchestrator.service import OrderSubmissionResult, SubmissionOrchestrator

router = APIRouter()

EXPORT_FILENAME = "pn-filing.csv"


def _skipped(items: list[SkippedItem]) -> list[SkippedItemResponse]:
    return [
        SkippedItemResponse(order_name=s.order_name, reason=s.reason.value, product_id=s.product_ref)
        for s in items
    ]


def _no_documents(skipped: list[SkippedItem]) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "message": "No documents could be built for the submitted orders",
            "skipped": [s.model_dump() for s in _skipped(skipped)],
        },
    )


def _order_results(results: list[OrderSubmissionResult]) -> list[OrderSubmissionResponse]:
    return [
        OrderSubmissionResponse(
            order_name=r.order_name,
            tracking_number=r.tracking_number,
            success=r.success,
            document_id=r.document_id,
            message=r.message,
            submission_id=r.submission_id,
        )
        for r in results
    ]


@router.post("/submit", response_model=FilingSubmitResponse)
async def submit_filings(
    request: FilingRequest,
    http_request: Request,
    db: AsyncSession = Depends(get_db),
    orchestrator: SubmissionOrchestrator = Depends(get_submission_orchestrator),
) -> FilingSubmitResponse:
    """Build and submit Prior Notice filings for a batch of orders."""
    try:
        result = await orchestrator.submit(
            db,
            [o.to_domain() for o in request.orders],
            request.estimated_arrival_date,
            overrides=request.overrides,
        )
    except InvalidBatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    http_request.state.log_context = {
        "orders": len(request.orders),
        "filed": result.successful,
        "failed": result.failed,
        "duplicates": len(result.duplicates),
    }

    if result.total == 0 and not result.duplicates:
        raise _no_documents(result.orders_not_found + result.skipped_lines)

    return FilingSubmitResponse(
        format_version=result.format_version,
        total=result.total,
        successful=result.successful,
        failed=result.failed,
        results=_order_results(result.results),
        duplicates=_order_results(result.duplicates),
        orders_not_found=_skipped(result.orders_not_found),
        skipped_lines=_skipped(result.skipped_lines),
        documents=result.documents,
    )


@router.post("/export")
async def export_filings(
    request: FilingRequest,
    db: AsyncSession = Depends(get_db),
    orchestrator: SubmissionOrchestrator = Depends(get_submission_orchestrator),
) -> Response:
    """Build the flat-file rows for a batch and return them as a CSV download."""
    try:
        result = await orchestrator.export(
            db,
            [o.to_domain() for o in request.orders],
            request.estimated_arrival_date,
            overrides=request.overrides,
        )
    except InvalidBatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not result.rows:
        raise _no_documents(result.skipped)

    return Response(
        content=result.csv,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/order-sheet", response_model=OrderSheetResponse)
async def upload_order_sheet(
    file: UploadFile,
    product_id: str = Form(...),
    quantity: int = Form(1),
) -> OrderSheetResponse:
    """Parse an OrderName/Tracking CSV into orders for one product."""
    if quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be at least 1")

    content = await file.read()
    try:
        orders = parse_order_sheet(content.decode("utf-8"), product_id, quantity)
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Order sheet must be UTF-8 encoded CSV")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return OrderSheetResponse(
        orders=[
            OrderIn(
                order_name=o.order_name,
                tracking_number=o.tracking_number,
                line_items=[OrderLineIn(product_id=li.product_ref, quantity=li.quantity) for li in o.line_items],
            )
            for o in orders
        ],
        count=len(orders),
    )
