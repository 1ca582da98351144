"""
Tsklets Engine
==============

Ticket and development-task lifecycle engine:
- Ticket status machine with role-gated actions
- Escalation / SLA age tracking
- Ticket to dev task conversion
- Sprint planning and velocity accounting
"""

__version__ = "1.0.0"
