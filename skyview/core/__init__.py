"""Core Layer — domain logic with no network, database, or filesystem IO.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions are pure except where a clock or random source is injected

Design Decisions:
    - Functional core separated from imperative shell
"""
