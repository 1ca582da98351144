"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (catalog, tickets,
dev_tasks, sprints).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add ticket, task or sprint business rules to the shared kernel.
"""
