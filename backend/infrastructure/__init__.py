from __future__ import annotations

"""
Infrastructure layer (no catalog semantics).

Adapters behind the application ports: Postgres/in-memory movie store, email
senders, the wall clock and the hourly reminder scheduler.
"""

__all__ = [
    "clock",
    "config",
    "email",
    "persistence",
    "scheduling",
]
