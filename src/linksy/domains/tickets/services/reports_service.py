# src/linksy/domains/tickets/services/reports_service.py
"""
Reports Service

Site admin reports over tickets and their audit trail.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ....errors import RepositoryError
from ....repositories import get_provider_repository, get_ticket_event_repository, get_ticket_repository
from ...notifications.services import get_notification_service
from ..constants import AGING_BUCKETS, REASSIGNMENT_REASONS, TOP_PROVIDER_LIMIT

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def bucket_counts(age_days: List[int]) -> Dict[str, int]:
    """Count tickets per aging bucket; ages below the first bucket are not counted."""
    buckets = {}
    for label, low, high in AGING_BUCKETS:
        buckets[label] = len([d for d in age_days if d >= low and (high is None or d < high)])
    return buckets


def _embedded_name(ticket: Dict[str, Any], relation: str) -> Optional[str]:
    related = ticket.get(relation)
    if isinstance(related, list):
        related = related[0] if related else None
    return related.get("name") if isinstance(related, dict) else None


class ReportsService:
    """Aging and reassignment reports."""

    def __init__(self):
        self.tickets = get_ticket_repository()
        self.events = get_ticket_event_repository()
        self.providers = get_provider_repository()

    def aging_report(
        self,
        threshold_hours: int = 48,
        send_notifications: bool = False,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Pending tickets older than the threshold, bucketed by age in days."""
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(hours=threshold_hours)).isoformat()

        aging = []
        for ticket in self.tickets.get_pending_older_than(cutoff):
            age_hours = int((now - parse_timestamp(ticket["created_at"])).total_seconds() // 3600)
            aging.append({
                "id": ticket.get("id"),
                "ticket_number": ticket.get("ticket_number"),
                "client_name": ticket.get("client_name"),
                "provider_name": _embedded_name(ticket, "linksy_providers"),
                "need_name": _embedded_name(ticket, "linksy_needs"),
                "ageHours": age_hours,
                "ageDays": age_hours // 24,
                "created_at": ticket.get("created_at"),
            })

        buckets = bucket_counts([t["ageDays"] for t in aging])

        notification_sent = False
        if send_notifications and aging:
            notification_sent = self._notify_aging(aging, buckets, threshold_hours)

        return {
            "total": len(aging),
            "thresholdHours": threshold_hours,
            "buckets": buckets,
            "notificationSent": notification_sent,
            "tickets": aging,
        }

    def _notify_aging(self, aging: List[Dict[str, Any]], buckets: Dict[str, int], threshold_hours: int) -> bool:
        count = len(aging)
        plural = "s" if count != 1 else ""
        try:
            sent = get_notification_service().notify_site_admins(
                type="ticket_aging",
                title=f"Aging Referral Alert: {count} Pending Ticket{plural}",
                message=(
                    f"You have {count} pending referral ticket{plural} open for more than "
                    f"{threshold_hours} hours. Please review them in the dashboard."
                ),
                action_url="/dashboard/tickets?status=pending",
                metadata={"buckets": buckets, "oldest": [t["id"] for t in aging[:10]]},
            )
        except RepositoryError as e:
            logger.error(f"Failed to send aging notifications: {e.message}")
            return False
        return sent > 0

    def reassignment_stats(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Dict[str, Any]:
        """Who moves tickets, why, and which providers give and receive them."""
        events = self.events.list_by_types(["reassigned", "forwarded"], date_from, date_to)
        tickets = self.tickets.get_reassigned(date_from, date_to)

        provider_initiated = len([
            e for e in events if e.get("actor_type") in ("provider_contact", "provider_admin")
        ])
        admin_initiated = len([e for e in events if e.get("actor_type") == "site_admin"])

        counts = [t.get("reassignment_count") or 0 for t in tickets]
        counts = [c for c in counts if c > 0]
        average = round(sum(counts) / len(counts), 2) if counts else 0

        forwarding = Counter(
            (e.get("previous_state") or {}).get("provider_id")
            for e in events
            if e.get("event_type") == "forwarded"
        )
        receiving = Counter((e.get("new_state") or {}).get("provider_id") for e in events)
        forwarding.pop(None, None)
        receiving.pop(None, None)

        reason_breakdown = {reason: 0 for reason in REASSIGNMENT_REASONS}
        for event in events:
            reason = event.get("reason")
            if reason:
                reason_breakdown[reason] = reason_breakdown.get(reason, 0) + 1

        top_forwarding = forwarding.most_common(TOP_PROVIDER_LIMIT)
        top_receiving = receiving.most_common(TOP_PROVIDER_LIMIT)
        names = self._provider_names([pid for pid, _ in top_forwarding + top_receiving])

        return {
            "total_reassignments": len(events),
            "provider_initiated": provider_initiated,
            "admin_initiated": admin_initiated,
            "average_reassignments_per_ticket": average,
            "top_forwarding_providers": [
                {"provider_id": pid, "provider_name": names[pid], "forward_count": count}
                for pid, count in top_forwarding
                if pid in names
            ],
            "top_receiving_providers": [
                {"provider_id": pid, "provider_name": names[pid], "receive_count": count}
                for pid, count in top_receiving
                if pid in names
            ],
            "reason_breakdown": reason_breakdown,
        }

    def _provider_names(self, provider_ids: List[str]) -> Dict[str, str]:
        if not provider_ids:
            return {}
        providers = self.providers.get_many(list(dict.fromkeys(provider_ids)))
        return {p["id"]: p.get("name") for p in providers}


def get_reports_service() -> ReportsService:
    return ReportsService()
