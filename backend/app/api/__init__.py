"""API Layer — FastAPI routes, payload-context dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses
    - Write routes receive payloads through unique_payload(), never raw bodies

Design Decisions:
    - Thin routes delegate uniqueness to services/uniqueness_validator.py
"""
