"""Infrastructure Layer — database sessions and logging setup.

Invariants:
    - Nothing here imports from api/ or services/
"""
