from app.core.models.class_model import SchoolClass
from app.core.models.student import Student
from app.core.models.fee_structure import FeeStructure
from app.core.models.payment import Payment
from app.core.models.student_fee_balance import StudentFeeBalance
from app.core.models.bank_account_settings import BankAccountSettings
from app.core.models.fee_audit_log import FeeAuditLog

__all__ = [
    "SchoolClass",
    "Student",
    "FeeStructure",
    "Payment",
    "StudentFeeBalance",
    "BankAccountSettings",
    "FeeAuditLog",
]
