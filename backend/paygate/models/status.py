"""
Status Enums

Closed sets of lifecycle states stored as upper-case strings.
"""
from enum import Enum


class MerchantStatus(str, Enum):
    """Merchant account lifecycle. REJECTED and SUSPENDED are terminal."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class PaymentStatus(str, Enum):
    """
    Payment lifecycle.

    Valid transitions:
    - PENDING -> SUCCESS
    - PENDING -> FAILED
    - SUCCESS -> REFUNDED
    FAILED and REFUNDED are terminal.
    """
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class TransactionAction(str, Enum):
    """Kind of payment lifecycle event recorded in the audit trail."""
    CREATE = "CREATE"
    STATUS_UPDATE = "STATUS_UPDATE"
    REFUND = "REFUND"
