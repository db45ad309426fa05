"""Services Layer — async orchestration over core logic and injected IO.

Invariants:
    - Services depend on core/ and on Protocols, never on concrete infrastructure
    - ViewerService is the single entry point used by the API layer
"""
