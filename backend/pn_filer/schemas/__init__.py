from pn_filer.schemas.filing import (
    FilingRequest,
    FilingSubmitResponse,
    OrderIn,
    OrderLineIn,
    OrderSheetResponse,
)
from pn_filer.schemas.health import HealthResponse
from pn_filer.schemas.product import ProductCreate, ProductResponse
from pn_filer.schemas.settings import SettingsResponse, SettingsUpdateRequest
from pn_filer.schemas.submission import (
    ReconcilePendingRequest,
    ReconcileRequest,
    ReconcileResponse,
    SubmissionListResponse,
    SubmissionResponse,
)

__all__ = [
    "FilingRequest",
    "FilingSubmitResponse",
    "HealthResponse",
    "OrderIn",
    "OrderLineIn",
    "OrderSheetResponse",
    "ProductCreate",
    "ProductResponse",
    "ReconcilePendingRequest",
    "ReconcileRequest",
    "ReconcileResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
    "SubmissionListResponse",
    "SubmissionResponse",
]
