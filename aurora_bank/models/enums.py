"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class EntryDirection(str, enum.Enum):
    """Direction of a ledger entry relative to the owning account."""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class EntryStatus(str, enum.Enum):
    # Only COMPLETED entries are ever written; rejected attempts
    # leave no row behind.
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TransferType(str, enum.Enum):
    """Payment rail used for an external transfer."""
    IMPS = "IMPS"
    NEFT = "NEFT"
    RTGS = "RTGS"


class LoanType(str, enum.Enum):
    HOME = "home"
    CAR = "car"
    PERSONAL = "personal"
    EDUCATION = "education"
    BUSINESS = "business"


class EmploymentType(str, enum.Enum):
    SALARIED = "salaried"
    SELF_EMPLOYED = "self-employed"
    BUSINESS = "business"
    PROFESSIONAL = "professional"


class LoanStatus(str, enum.Enum):
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
