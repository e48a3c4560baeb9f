from letrus_care.core.audit.models import AuditLog
from letrus_care.core.audit.service import AuditAction, AuditService

__all__ = ["AuditLog", "AuditAction", "AuditService"]
