"""Pydantic schemas for submission history and PNC reconciliation."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from pn_filer.models.submission import SubmissionStatus
from pn_filer.services.customscity_client import StatusOutcome


class SubmissionResponse(BaseModel):
    id: uuid.UUID
    order_name: str
    tracking_number: str
    document_id: str | None = None
    format_version: str | None = None
    pnc_number: str | None = None
    status: SubmissionStatus
    error_message: str | None = None
    submitted_at: datetime | None = None
    pnc_retrieved_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionResponse]
    total: int


class ReconcileRequest(BaseModel):
    submission_ids: list[uuid.UUID] = Field(min_length=1)


class ReconcilePendingRequest(BaseModel):
    limit: int | None = Field(default=None, ge=1, le=500)


class ReconcileItemResponse(BaseModel):
    submission_id: uuid.UUID
    order_name: str
    tracking_number: str
    success: bool
    outcome: StatusOutcome
    pnc_number: str | None = None
    message: str = ""


class ReconcileResponse(BaseModel):
    total: int
    successful: int
    failed: int
    results: list[ReconcileItemResponse] = Field(default_factory=list)
