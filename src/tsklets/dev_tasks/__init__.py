"""
Dev Tasks Bounded Context
=========================

Internal engineering work items: creation from tickets or standalone,
the open status machine, story points and sprint planning hooks.
"""
