"""Services Layer — async shell around the pure core.

Invariants:
    - Services load rows, call core/ for every decision, then persist and commit
    - One commit per state-changing operation (money moves are all-or-nothing)
    - Domain errors raised from core/ propagate untouched to the API handlers

Design Decisions:
    - Plain async functions taking an AsyncSession, no service classes
"""
