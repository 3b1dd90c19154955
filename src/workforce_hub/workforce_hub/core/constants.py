"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_LIST_LIMIT = 200

MPCN_ID_PREFIX = "MPCN-"
MPCN_ID_LENGTH = 8
MPCN_ID_MIN_LENGTH = 6

# Work item bounds; rates must fit DECIMAL(10,2).
MAX_HOURS_PER_DAY = Decimal("24")
MAX_RATE = Decimal("99999999.99")

INVALID_CREDENTIALS_MESSAGE = "Incorrect password. Please try again."

ROLE_APPROVAL_TTL_HOURS = 24

VERIFICATION_CODE_TTL_MINUTES = 10
VERIFICATION_RESEND_SECONDS = 60

SLA_WARNING_HOURS = 4
SLA_HOURS_BY_PRIORITY = {
    "urgent": 4,
    "high": 24,
    "normal": 72,
    "low": 168,
}

OUTBOX_MAX_ATTEMPTS = 5
OUTBOX_BACKOFF_SECONDS = 60
OUTBOX_BATCH_SIZE = 20

MESSAGE_MAX_LENGTH = 4000
