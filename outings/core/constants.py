"""Global constants for the outings application."""

# Collections
USERS_COLLECTION = "users"
REQUESTS_COLLECTION = "outing_requests"
GROUPS_COLLECTION = "groups"
LOCATION_EVENTS_COLLECTION = "location_events"
MESSAGES_COLLECTION = "messages"

# Request statuses
STATUS_PENDING = "pending"
STATUS_MATCHED = "matched"
STATUS_READY = "ready"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

REQUEST_STATUSES = (
    STATUS_PENDING,
    STATUS_MATCHED,
    STATUS_READY,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
)
OPEN_STATUSES = (STATUS_PENDING, STATUS_MATCHED, STATUS_READY)
BROWSABLE_STATUSES = (STATUS_PENDING, STATUS_MATCHED)
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

# Group statuses
GROUP_ACTIVE = "active"
GROUP_COMPLETED = "completed"
GROUP_CANCELLED = "cancelled"
PAST_GROUP_STATUSES = (GROUP_COMPLETED, GROUP_CANCELLED)

# Per-user outing history
HISTORY_LIMIT = 50
FREQUENT_PARTNERS_LIMIT = 5

# Location event types
CHECKIN = "checkin"
CHECKOUT = "checkout"

# Real-time events
EVENT_MEMBER_JOINED = "member-joined"
EVENT_GROUP_READY = "group-ready"
EVENT_MEMBER_LEFT = "member-left"
EVENT_REQUEST_CANCELLED = "request-cancelled"
EVENT_OUTING_STARTED = "outing-started"
EVENT_OUTING_COMPLETED = "outing-completed"
EVENT_MEMBER_CHECKIN = "member-checkin"
EVENT_MEMBER_CHECKOUT = "member-checkout"
EVENT_NEW_MESSAGE = "new-message"

CHANNEL_PREFIX = "group-"

# Messages
MESSAGE_MAX_LENGTH = 1000
