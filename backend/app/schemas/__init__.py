"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - Uniqueness is declared on write schemas with the Unique marker

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
