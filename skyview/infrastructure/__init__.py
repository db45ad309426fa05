"""Infrastructure Layer — database, Redis, filesystem and logging adapters.

Invariants:
    - Adapters satisfy the Protocols in core/repository_protocols.py
    - Storage-specific exceptions are mapped or absorbed here, never leaked raw
"""
