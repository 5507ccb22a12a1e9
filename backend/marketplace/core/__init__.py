"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core, imperative shell: services load state, call core, persist the result
    - Business rule violations raised as core.errors types, never HTTP exceptions
"""
