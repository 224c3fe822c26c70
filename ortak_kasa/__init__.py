"""
Ortak Kasa - Source Package

A small tracker for a shared cash pool split across named value groups.
Applying a number to a group credits the pool with (group value - input)
and records the result in an append-only history.

DESIGN PRINCIPLES:
1. One document is the single source of truth
2. Mutations are pure functions Document -> Document
3. No silent number coercion
4. History never changes retroactively
5. Persistence is best-effort and swappable
"""

__version__ = "1.0.0"
__author__ = "Ortak Kasa Team"
