"""
Catalog Bounded Context
=======================

Products, their structure (modules, components, addons, epics, features)
and the per-product issue-key sequences shared by tickets and dev tasks.
"""
