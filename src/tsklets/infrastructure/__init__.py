"""
Infrastructure Package
======================

Process-wide technical resources (database engine and sessions).
"""
