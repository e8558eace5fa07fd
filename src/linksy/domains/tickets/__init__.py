# src/linksy/domains/tickets/__init__.py
"""
Tickets Domain - Client referrals

This domain handles:
- Ticket intake from staff and the public widget (duplicate and cap guards)
- Reassign, forward and internal assignment with an audit trail
- Comments and event history
- Aging and reassignment reports for site admins
"""
