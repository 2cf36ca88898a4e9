"""Payment schedule enums."""

from enum import Enum


class PaymentFrequency(str, Enum):
    """Recurrence rule of a payment schedule."""

    ONE_TIME = "one-time"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    ANNUAL = "annual"


class PaymentMethod(str, Enum):
    """How an occurrence was paid."""

    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    UPI = "upi"


class OccurrenceStatus(str, Enum):
    """Status of a single due date. Unlisted dates read as UNPAID."""

    UNPAID = "unpaid"
    PAID = "paid"


class PaymentStatusFilter(str, Enum):
    """Status filter for the flattened payment list."""

    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


# Frequencies that carry one amount per due date
PER_DATE_AMOUNT_FREQUENCIES = {PaymentFrequency.QUARTERLY, PaymentFrequency.HALF_YEARLY}
