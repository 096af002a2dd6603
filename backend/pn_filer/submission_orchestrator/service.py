"""SubmissionOrchestrator: orders in, filings out.

Flow:
1. Reject bad input and missing configuration before any external call
2. Resolve shipments from Shopify, load catalog entries and settings
3. Build documents in the configured format version
4. Hold back order+tracking pairs already stored or repeated in the batch
   (a pair whose stored attempt Failed is filed again)
5. Submit each remaining document in input order, pacing between calls; a
   failed submission is recorded and the batch carries on
6. Persist new rows and update retried rows in place
7. Log an audit event with the batch summary

Flat-file export runs steps 1 to 3 in the flat-file format and renders CSV.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from pn_filer.audit.service import AuditService
from pn_filer.config import Settings
from pn_filer.document_builder import (
    BuildResult,
    BuiltDocument,
    FormatVersion,
    SkippedItem,
    build_documents,
    get_format_spec,
    to_csv,
)
from pn_filer.domain import OrderRequest
from pn_filer.errors import ConfigurationError, InvalidBatchError
from pn_filer.models.submission import Submission, SubmissionStatus
from pn_filer.services.customscity_client import CustomsCityClient
from pn_filer.shipment_resolver.service import ShipmentResolver
from pn_filer.stores.catalog import CatalogLookup
from pn_filer.stores.settings_store import SettingsProvider
from pn_filer.stores.submissions import SubmissionStore

logger = logging.getLogger("pnfiler.orchestrator")


@dataclass
class OrderSubmissionResult:
    order_name: str
    tracking_number: str
    success: bool
    document_id: str | None = None
    message: str = ""
    submission_id: str | None = None


@dataclass
class SubmissionResult:
    format_version: FormatVersion
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: list[OrderSubmissionResult] = field(default_factory=list)
    duplicates: list[OrderSubmissionResult] = field(default_factory=list)
    orders_not_found: list[SkippedItem] = field(default_factory=list)
    skipped_lines: list[SkippedItem] = field(default_factory=list)
    documents: list[dict] = field(default_factory=list)


@dataclass
class ExportResult:
    rows: list[dict] = field(default_factory=list)
    csv: str = ""
    skipped: list[SkippedItem] = field(default_factory=list)


def validate_batch(orders: list[OrderRequest], arrival_date: date | None) -> None:
    if not orders:
        raise InvalidBatchError("Orders array is required")
    if arrival_date is None:
        raise InvalidBatchError("Estimated arrival date is required")


class SubmissionOrchestrator:
    """Drive resolve → build → submit → persist for one batch of orders."""

    def __init__(
        self,
        settings: Settings,
        resolver: ShipmentResolver,
        client: CustomsCityClient,
        catalog: CatalogLookup | None = None,
        settings_provider: SettingsProvider | None = None,
        store: SubmissionStore | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.format_version = FormatVersion(settings.filing_format_version)
        self.submission_delay = settings.submission_delay_seconds
        self.resolver = resolver
        self.client = client
        self.catalog = catalog or CatalogLookup()
        self.settings_provider = settings_provider or SettingsProvider()
        self.store = store or SubmissionStore()
        self.sleep = sleep

    async def _build(
        self,
        db: AsyncSession,
        orders: list[OrderRequest],
        arrival_date: date,
        format_version: FormatVersion,
        overrides: dict[str, str] | None,
    ) -> BuildResult:
        shipments = await self.resolver.resolve_shipments([o.order_name for o in orders])
        product_ids = list(dict.fromkeys(line.product_ref for o in orders for line in o.line_items))
        catalog = await self.catalog.lookup(db, product_ids)
        settings_map = await self.settings_provider.load(db)

        return build_documents(
            orders,
            shipments,
            catalog,
            settings_map,
            arrival_date,
            format_version,
            overrides=overrides,
        )

    async def export(
        self,
        db: AsyncSession,
        orders: list[OrderRequest],
        arrival_date: date | None,
        overrides: dict[str, str] | None = None,
    ) -> ExportResult:
        """Build the flat-file rows for a batch and render them as CSV."""
        validate_batch(orders, arrival_date)
        self.resolver.ensure_configured()

        built = await self._build(db, orders, arrival_date, FormatVersion.FLAT_FILE, overrides)
        rows = built.payloads
        logger.info("Exported %d rows for %d orders", len(rows), len(orders))
        return ExportResult(rows=rows, csv=to_csv(rows), skipped=built.skipped)

    async def submit(
        self,
        db: AsyncSession,
        orders: list[OrderRequest],
        arrival_date: date | None,
        overrides: dict[str, str] | None = None,
    ) -> SubmissionResult:
        """Build and submit filings for a batch of orders.

        An order+tracking pair is filed at most once: repeats within the
        batch and pairs already stored are reported in ``duplicates`` and
        never sent. A stored pair whose last attempt failed is filed again
        and its row updated with the new outcome.

        Raises:
            InvalidBatchError: No orders or no arrival date.
            ConfigurationError: Missing credentials, or the configured
                format version cannot be submitted.
        """
        validate_batch(orders, arrival_date)
        spec = get_format_spec(self.format_version)
        if not spec.submittable:
            raise ConfigurationError(
                f"Format version '{spec.version.value}' is export-only and cannot be submitted"
            )
        self.client.ensure_configured()
        self.resolver.ensure_configured()

        built = await self._build(db, orders, arrival_date, spec.version, overrides)
        result = SubmissionResult(
            format_version=spec.version,
            orders_not_found=built.skipped_orders,
            skipped_lines=[s for s in built.skipped if not s.is_order_level],
            documents=built.payloads,
        )

        to_send, retries = await self._select_new_filings(db, built.documents, result)

        for index, document in enumerate(to_send):
            if index > 0:
                await self.sleep(self.submission_delay)

            filing = await self.client.submit_document(document.payload)
            result.results.append(
                OrderSubmissionResult(
                    order_name=document.order_name,
                    tracking_number=document.tracking_number,
                    success=filing.success,
                    document_id=filing.document_id,
                    message=filing.message,
                )
            )
            if filing.success:
                result.successful += 1
            else:
                result.failed += 1
                logger.warning("Submission failed for %s: %s", document.order_name, filing.message)

        result.total = len(result.results)
        await self._persist(db, result, retries)

        logger.info(
            "Submitted %d of %d documents (%d duplicates, %d orders not found)",
            result.successful, result.total, len(result.duplicates), len(result.orders_not_found),
        )
        return result

    async def _select_new_filings(
        self,
        db: AsyncSession,
        documents: list[BuiltDocument],
        result: SubmissionResult,
    ) -> tuple[list[BuiltDocument], dict[tuple[str, str], Submission]]:
        """Split built documents into those to send and duplicates.

        Returns the documents to send and the Failed rows they will retry,
        keyed by order+tracking pair.
        """
        stored = await self.store.get_by_keys(
            db, [(d.order_name, d.tracking_number) for d in documents]
        )
        to_send: list[BuiltDocument] = []
        retries: dict[tuple[str, str], Submission] = {}
        seen: set[tuple[str, str]] = set()

        for document in documents:
            key = (document.order_name, document.tracking_number)
            record = stored.get(key)

            if key in seen:
                result.duplicates.append(
                    OrderSubmissionResult(
                        order_name=document.order_name,
                        tracking_number=document.tracking_number,
                        success=False,
                        message="Duplicate of an earlier order in this batch",
                    )
                )
                continue
            seen.add(key)

            if record is not None and record.status != SubmissionStatus.FAILED:
                result.duplicates.append(
                    OrderSubmissionResult(
                        order_name=document.order_name,
                        tracking_number=document.tracking_number,
                        success=False,
                        document_id=record.document_id,
                        message="Already submitted",
                        submission_id=str(record.id),
                    )
                )
                continue

            if record is not None:
                retries[key] = record
            to_send.append(document)

        if result.duplicates:
            logger.info(
                "Skipping %d duplicate filings: %s",
                len(result.duplicates), ", ".join(d.order_name for d in result.duplicates),
            )
        return to_send, retries

    async def _persist(
        self,
        db: AsyncSession,
        result: SubmissionResult,
        retries: dict[tuple[str, str], Submission],
    ) -> None:
        if not result.results:
            return

        submitted_at = datetime.now(timezone.utc)
        rows = []
        for r in result.results:
            record = retries.get((r.order_name, r.tracking_number))
            if record is not None:
                retried = await self.store.record_retry(
                    db, record.id, r.document_id if r.success else None, r.message, submitted_at
                )
                if not retried:
                    logger.warning(
                        "Submission %s for %s changed during retry; stored row left as is",
                        record.id, r.order_name,
                    )
                continue
            rows.append(
                {
                    "order_name": r.order_name,
                    "tracking_number": r.tracking_number,
                    "document_id": r.document_id,
                    "format_version": result.format_version.value,
                    "status": SubmissionStatus.SUBMITTED if r.success else SubmissionStatus.FAILED,
                    "error_message": None if r.success else r.message,
                    "submitted_at": submitted_at,
                }
            )
        await self.store.insert_skip_conflicts(db, rows)

        stored = await self.store.get_by_keys(
            db, [(r.order_name, r.tracking_number) for r in result.results]
        )
        for r in result.results:
            record = stored.get((r.order_name, r.tracking_number))
            if record is None:
                continue
            r.submission_id = str(record.id)
            if r.success and record.document_id != r.document_id:
                # Another request stored this pair between the lookup and the insert
                logger.warning(
                    "Filing %s for %s was accepted but submission %s holds document %s",
                    r.document_id, r.order_name, record.id, record.document_id,
                )

        await AuditService.log_event(
            db,
            event_type="FILING_SUBMITTED",
            entity_type="submission_batch",
            event_data={
                "format_version": result.format_version.value,
                "total": result.total,
                "successful": result.successful,
                "failed": result.failed,
                "duplicates": len(result.duplicates),
                "orders_not_found": [s.order_name for s in result.orders_not_found],
            },
        )
