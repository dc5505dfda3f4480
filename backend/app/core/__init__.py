"""Core Layer — pure validation logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: the shell performs the
      store read and awaits builders, the core assembles filters and descriptors
"""
