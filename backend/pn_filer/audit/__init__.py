from pn_filer.audit.service import AuditService

__all__ = ["AuditService"]
