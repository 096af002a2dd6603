from pn_filer.submission_orchestrator.service import (
    ExportResult,
    OrderSubmissionResult,
    SubmissionOrchestrator,
    SubmissionResult,
)

__all__ = [
    "ExportResult",
    "OrderSubmissionResult",
    "SubmissionOrchestrator",
    "SubmissionResult",
]
