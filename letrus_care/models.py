"""Import every model so Base.metadata knows all tables (Alembic, scripts, tests)."""

# ruff: noqa: F401

from letrus_care.core.audit.models import AuditLog
from letrus_care.core.auth.models import OTPCode, User
from letrus_care.core.database.base import Base
from letrus_care.core.receipts.models import ReceiptSequence
from letrus_care.modules.centers.models import Center
from letrus_care.modules.courses.models import Course, SchoolClass, TuitionFee
from letrus_care.modules.enrollments.models import Enrollment
from letrus_care.modules.financial_plans.models import FinancialPlanEntry
from letrus_care.modules.payments.models import Payment
from letrus_care.modules.school_years.models import SchoolYear
from letrus_care.modules.students.models import Student

metadata = Base.metadata
