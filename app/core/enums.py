from enum import Enum


class Term(str, Enum):
    FIRST = "First Term"
    SECOND = "Second Term"
    THIRD = "Third Term"


class FeeCategory(str, Enum):
    TUITION = "tuition"
    LEVY = "levy"
    EXAM = "exam"
    BOOKS = "books"
    UNIFORM = "uniform"
    TRANSPORT = "transport"
    SPORTS = "sports"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "BankTransfer"
    POS = "POS"
    ONLINE_PAYMENT = "OnlinePayment"
    CHEQUE = "Cheque"


# Methods backed by an external transaction; a reference is mandatory.
REFERENCE_REQUIRED_METHODS = frozenset(
    {PaymentMethod.BANK_TRANSFER, PaymentMethod.POS, PaymentMethod.ONLINE_PAYMENT}
)


class PaymentType(str, Enum):
    FULL = "Full"
    PARTIAL = "Partial"


class PaymentSource(str, Enum):
    MANUAL = "Manual"
    PARENT = "Parent"
    ACCOUNTANT = "Accountant"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class StudentFeeStatus(str, Enum):
    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"
