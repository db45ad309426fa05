"""SkyView Application Package — sky-image cutouts, shareable viewer state, catalog labels.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
