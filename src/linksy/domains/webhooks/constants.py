# src/linksy/domains/webhooks/constants.py
"""
Webhooks Domain Constants
"""

# Events a webhook may subscribe to
WEBHOOK_EVENT_TYPES = [
    "ticket.created",
    "ticket.status_changed",
    "ticket.reassigned",
    "ticket.forwarded",
    "ticket.assigned",
]

# Sent only by the test endpoint, never subscribed to
TEST_EVENT_TYPE = "webhook.test"

SIGNATURE_HEADER = "X-Linksy-Signature"
EVENT_HEADER = "X-Linksy-Event"
TIMESTAMP_HEADER = "X-Linksy-Timestamp"

# Default tolerance for receivers verifying signatures
SIGNATURE_TOLERANCE_SECONDS = 300

DEFAULT_DELIVERY_PAGE_SIZE = 20
MAX_DELIVERY_PAGE_SIZE = 100
