"""Health Routes — liveness and readiness checks."""

import marketplace.infrastructure.database as db_module


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json() == {
        "status": "healthy", "service": "card-marketplace-api", "version": "1.0.0",
    }


async def test_ready_reports_database_and_payments(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json() == {
        "status": "ready", "checks": {"database": "healthy", "payments": "fake"},
    }


async def test_not_ready_without_database(client):
    db_module.db_manager = None
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"
