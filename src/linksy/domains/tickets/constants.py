# src/linksy/domains/tickets/constants.py
"""
Tickets Domain Constants
"""

# Ticket statuses
TICKET_STATUSES = [
    "pending",
    "customer_need_addressed",
    "wrong_organization_referred",
    "outside_of_scope",
    "client_not_eligible",
    "unable_to_assist",
    "client_unresponsive",
]

# Audit trail event types
TICKET_EVENT_TYPES = [
    "created",
    "assigned",
    "reassigned",
    "forwarded",
    "status_changed",
    "comment_added",
    "updated",
]

# Why a ticket moved
REASSIGNMENT_REASONS = [
    "unable_to_assist",
    "wrong_org",
    "capacity",
    "other",
    "admin_reassignment",
    "internal_assignment",
]

# Reasons a provider contact may give when forwarding
FORWARD_REASONS = ["unable_to_assist", "wrong_org", "capacity", "other"]

FORWARD_ACTIONS = ["forward_to_admin", "forward_to_provider"]

ACTOR_TYPES = ["site_admin", "provider_admin", "provider_contact", "system"]

# Fields tenant admins may change through PATCH
UPDATABLE_FIELDS = [
    "status",
    "description_of_need",
    "client_name",
    "client_phone",
    "client_email",
    "follow_up_sent",
    "provider_id",
    "need_id",
    "client_user_id",
]

# Aging report buckets: (label, min days inclusive, max days exclusive)
AGING_BUCKETS = [
    ("2-3 days", 2, 3),
    ("3-7 days", 3, 7),
    ("1-2 weeks", 7, 14),
    ("2+ weeks", 14, None),
]

# Source tag for tickets submitted through the public widget
PUBLIC_TICKET_SOURCE = "public_search"

# Default limits
DEFAULT_TICKET_LIMIT = 50
MAX_TICKET_LIMIT = 100
TOP_PROVIDER_LIMIT = 10
