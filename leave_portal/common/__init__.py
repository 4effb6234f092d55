"""Common module — shared utilities for the leave portal."""

from leave_portal.common.audit import AuditTrail, create_audit_entry
from leave_portal.common.constants import (
    ACTION_TARGETS,
    PERMISSIONS,
    LeaveAction,
    LeaveSession,
    LeaveStatus,
    LeaveType,
    RecommendedBy,
    RejectionReason,
    UserRole,
)
from leave_portal.common.exceptions import (
    AppException,
    ForbiddenException,
    InvalidTransitionException,
    LeaveRejected,
    NotFoundException,
    PersistenceException,
    ValidationException,
    register_exception_handlers,
)
from leave_portal.common.filters import apply_filters, apply_sorting

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "ACTION_TARGETS",
    "LeaveAction",
    "LeaveSession",
    "LeaveStatus",
    "LeaveType",
    "RecommendedBy",
    "RejectionReason",
    "UserRole",
    "PERMISSIONS",
    # Exceptions
    "AppException",
    "ForbiddenException",
    "InvalidTransitionException",
    "LeaveRejected",
    "NotFoundException",
    "PersistenceException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_sorting",
]
