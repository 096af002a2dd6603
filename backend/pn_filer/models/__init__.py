from pn_filer.models.base import Base, TimestampMixin
from pn_filer.models.audit import AuditEvent
from pn_filer.models.product import Product
from pn_filer.models.setting import Setting
from pn_filer.models.submission import Submission, SubmissionStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "AuditEvent",
    "Product",
    "Setting",
    "Submission",
    "SubmissionStatus",
]
