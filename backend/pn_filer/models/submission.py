"""ORM model for filing submissions and their PNC state."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from pn_filer.models.base import Base


class SubmissionStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    FAILED = "failed"
    PNC_RECEIVED = "pnc_received"


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("order_name", "tracking_number", name="uq_submissions_order_tracking"),
        Index("ix_submissions_status_submitted_at", "status", "submitted_at"),
        Index("ix_submissions_submitted_at", "submitted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_name: Mapped[str] = mapped_column(String(100), nullable=False)
    tracking_number: Mapped[str] = mapped_column(String(100), nullable=False)
    document_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    format_version: Mapped[str | None] = mapped_column(String(20), nullable=True)
    pnc_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[SubmissionStatus] = mapped_column(
        SAEnum(SubmissionStatus, name="submission_status",
               values_callable=lambda e: [m.value for m in e]),
        default=SubmissionStatus.SUBMITTED,
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    pnc_retrieved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def awaiting_confirmation(self) -> bool:
        return self.document_id is not None and self.pnc_number is None
