"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate shape and bounds at the boundary; business rules live in core/
    - Money is Decimal in and out (serialized as strings in JSON)

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
