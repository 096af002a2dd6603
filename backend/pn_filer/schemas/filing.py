"""Pydantic schemas for filing submission and flat-file export."""

import uuid
from datetime import date

from pydantic import BaseModel, Field

from pn_filer.document_builder.formats import FormatVersion
from pn_filer.domain import OrderLine, OrderRequest


class OrderLineIn(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class OrderIn(BaseModel):
    order_name: str = Field(min_length=1)
    tracking_number: str = ""
    line_items: list[OrderLineIn] = Field(default_factory=list)

    def to_domain(self) -> OrderRequest:
        return OrderRequest(
            order_name=self.order_name.strip(),
            tracking_number=self.tracking_number.strip(),
            line_items=tuple(OrderLine(li.product_id, li.quantity) for li in self.line_items),
        )


class FilingRequest(BaseModel):
    orders: list[OrderIn] = Field(default_factory=list)
    estimated_arrival_date: date | None = None
    overrides: dict[str, str] | None = None


class SkippedItemResponse(BaseModel):
    order_name: str
    reason: str
    product_id: str | None = None


class OrderSubmissionResponse(BaseModel):
    order_name: str
    tracking_number: str
    success: bool
    document_id: str | None = None
    message: str = ""
    submission_id: uuid.UUID | None = None


class FilingSubmitResponse(BaseModel):
    format_version: FormatVersion
    total: int
    successful: int
    failed: int
    results: list[OrderSubmissionResponse] = Field(default_factory=list)
    # Pairs already filed or repeated in the batch; not sent again
    duplicates: list[OrderSubmissionResponse] = Field(default_factory=list)
    orders_not_found: list[SkippedItemResponse] = Field(default_factory=list)
    skipped_lines: list[SkippedItemResponse] = Field(default_factory=list)
    # Built payloads, returned for debugging
    documents: list[dict] = Field(default_factory=list)


class OrderSheetResponse(BaseModel):
    orders: list[OrderIn]
    count: int
