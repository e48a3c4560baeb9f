from typing import Any


class AppException(Exception):
    """Base application exception: HTTP status, stable reason code, message."""

    code = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)


# --- Input / reference errors ---


class ValidationError(AppException):
    """Validation error."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class NotFoundError(AppException):
    """Resource not found."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ClassNotFoundError(NotFoundError):
    code = "CLASS_NOT_FOUND"

    def __init__(self, class_id: Any = None):
        super().__init__("Class", class_id)


class CourseNotFoundError(NotFoundError):
    code = "COURSE_NOT_FOUND"

    def __init__(self, course_id: Any = None):
        super().__init__("Course", course_id)


class DuplicateError(AppException):
    """Duplicate resource."""

    code = "DUPLICATE"

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


# --- Domain invariant violations ---


class NoHistoricalFeeError(NotFoundError):
    """No tuition fee version existed for the course at the requested instant."""

    code = "NO_HISTORICAL_FEE"

    def __init__(self, course_id: int, as_of: Any):
        AppException.__init__(
            self,
            message=f"No tuition fee for course {course_id} as of {as_of}",
            status_code=404,
            details={"course_id": course_id, "as_of": str(as_of)},
        )


class NoActiveSchoolYearError(AppException):
    """Center has no school year marked as current."""

    code = "NO_ACTIVE_SCHOOL_YEAR"

    def __init__(self, center_id: int):
        super().__init__(
            message=f"No current school year for center {center_id}",
            status_code=409,
            details={"center_id": center_id},
        )


class AlreadyReconciledError(AppException):
    """Financial plan entry is already paid by another payment."""

    code = "ALREADY_RECONCILED"

    def __init__(self, entry_id: int, month: str, year: int, linked_payment_id: int | None):
        super().__init__(
            message=f"Financial plan for {month}/{year} is already paid",
            status_code=409,
            details={
                "entry_id": entry_id,
                "month": month,
                "year": year,
                "linked_payment_id": linked_payment_id,
            },
        )


class PlanEntryMissingError(AppException):
    """No financial plan entry for the referenced month."""

    code = "PLAN_ENTRY_MISSING"

    def __init__(self, enrollment_id: int, month: str, year: int):
        super().__init__(
            message=f"No financial plan entry for enrollment {enrollment_id} in {month}/{year}",
            status_code=409,
            details={"enrollment_id": enrollment_id, "month": month, "year": year},
        )


class FinancialPlanNotReadyError(AppException):
    """Enrollment's financial plan was never generated completely."""

    code = "FINANCIAL_PLAN_NOT_READY"

    def __init__(self, enrollment_id: int):
        super().__init__(
            message=f"Financial plan for enrollment {enrollment_id} is not complete",
            status_code=409,
            details={"enrollment_id": enrollment_id},
        )


# --- Access ---


class AuthenticationError(AppException):
    """Authentication failed."""

    code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)
