from pn_filer.reconciliation_worker.service import (
    ReconcileItemResult,
    ReconciliationResult,
    ReconciliationWorker,
)

__all__ = ["ReconcileItemResult", "ReconciliationResult", "ReconciliationWorker"]
