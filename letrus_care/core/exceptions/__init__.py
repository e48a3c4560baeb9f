from letrus_care.core.exceptions.base import (
    AlreadyReconciledError,
    AppException,
    AuthenticationError,
    AuthorizationError,
    ClassNotFoundError,
    CourseNotFoundError,
    DuplicateError,
    FinancialPlanNotReadyError,
    NoActiveSchoolYearError,
    NoHistoricalFeeError,
    NotFoundError,
    PlanEntryMissingError,
    ValidationError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "ClassNotFoundError",
    "CourseNotFoundError",
    "DuplicateError",
    "NoHistoricalFeeError",
    "NoActiveSchoolYearError",
    "AlreadyReconciledError",
    "PlanEntryMissingError",
    "FinancialPlanNotReadyError",
    "AuthenticationError",
    "AuthorizationError",
]
