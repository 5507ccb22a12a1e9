"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure imports only core/errors from the core package
    - All external calls wrapped with error mapping (and retry where idempotent)

Design Decisions:
    - Thin wrappers over vendor SDKs so services depend on protocols, not SDKs
"""
