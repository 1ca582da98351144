"""
Tickets Bounded Context
=======================

Ticket lifecycle: status machine, role-gated action policy, escalation
tracking, comments, links and the audit trail.
"""
