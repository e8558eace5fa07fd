# src/linksy/domains/providers/constants.py
"""
Providers Domain Constants
"""

PROVIDER_STATUSES = ["active", "paused", "inactive"]

NOTE_TYPES = ["general", "outreach", "update", "internal"]

CONTACT_ROLES = ["admin", "user"]

# Fields any active contact of the provider may edit
STAFF_FIELDS = [
    "description",
    "phone",
    "phone_extension",
    "email",
    "website",
    "hours",
    "contact_method",
    "allow_contact_email",
    "allow_follow_email",
    "allow_bulk_email",
    "allow_contact_phone",
    "social_facebook",
    "social_instagram",
    "social_twitter",
    "social_linkedin",
    "referral_instructions",
]

# Fields only site and tenant admins may edit
ADMIN_FIELDS = [
    "name",
    "sector",
    "is_active",
    "provider_status",
    "accepting_referrals",
    "referral_type",
    "project_status",
    "allow_auto_update",
    "parent_provider_id",
    "is_host",
    "host_embed_active",
    "host_widget_config",
    "host_monthly_token_budget",
    "service_zip_codes",
    "tenant_id",
]

CONTACT_UPDATABLE_FIELDS = [
    "job_title",
    "phone",
    "contact_type",
    "provider_role",
    "is_primary_contact",
    "is_default_referral_handler",
    "status",
]

DEFAULT_PROVIDER_LIMIT = 50
MAX_PROVIDER_LIMIT = 100
MAX_DUPLICATE_LIMIT = 200
