"""
Sprints Bounded Context
=======================

Two-week sprints: single-active lifecycle, frozen velocity, capacity,
retrospectives and burndown.
"""
