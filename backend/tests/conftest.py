"""Root conftest — shared test configuration."""

import os

# Tests never talk to the real payment provider or a server database
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("PAYMENT_PROVIDER", "fake")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
