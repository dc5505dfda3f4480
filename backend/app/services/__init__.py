"""Services Layer — the uniqueness validator and the store it reads.

Invariants:
    - Services own all awaits; core/ stays synchronous and pure
    - One store read per uniqueness check, no retries

Design Decisions:
    - Store injected through the UniqueStore protocol (core/repository_protocols.py)
"""
