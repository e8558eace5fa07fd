# src/linksy/domains/tickets/services/__init__.py
"""
Tickets Domain Services

Business logic for ticket intake, workflow transitions and reports.
"""

from .intake_service import (
    IntakeService,
    format_public_ticket_number,
    format_staff_ticket_number,
    get_intake_service,
)
from .reports_service import ReportsService, bucket_counts, get_reports_service
from .workflow_service import WorkflowOutcome, WorkflowService, get_workflow_service

__all__ = [
    "IntakeService",
    "ReportsService",
    "WorkflowOutcome",
    "WorkflowService",
    "bucket_counts",
    "format_public_ticket_number",
    "format_staff_ticket_number",
    "get_intake_service",
    "get_reports_service",
    "get_workflow_service",
]
