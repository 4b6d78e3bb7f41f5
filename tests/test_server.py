"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from treasury_dashboard.api import create_app


def test_health(make_context):
    """The liveness probe answers without touching upstreams."""
    with TestClient(create_app(make_context())) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_dashboard_endpoint(make_context, upstream):
    """GET /api/dashboard returns a freshly aggregated camelCase snapshot."""
    with TestClient(create_app(make_context())) as client:
        response = client.get("/api/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["treasury"]["totalUSD"] == 84000.0
    assert data["treasury"]["taoPrice"] == 400.0
    assert data["burnRate"]["monthlyBurnUSD"] == 4000.0
    assert data["burnRate"]["runwayMonths"] == 21.0
    assert data["staking"]["totalDelegatedUSD"] == 600000.0
    assert [tx["hash"] for tx in data["transactions"]] == ["0xbbb", "0xccc", "0xaaa"]
    assert data["lastUpdated"] > 0


def test_dashboard_served_from_cache(make_context, upstream):
    """A second request within the cache TTL does not hit the upstreams again."""
    with TestClient(create_app(make_context())) as client:
        client.get("/api/dashboard")
        first_count = len(upstream.requests)
        response = client.get("/api/dashboard")

    assert response.status_code == 200
    assert len(upstream.requests) == first_count


def test_dashboard_degrades_when_upstreams_fail(make_context, upstream):
    """Unavailable sources still produce a 200 with zeroed sections."""
    upstream.failing.update({"api.taostats.io", "api.etherscan.io", "api.coingecko.com", "docs.google.com"})
    with TestClient(create_app(make_context())) as client:
        response = client.get("/api/dashboard")

    assert response.status_code == 200
    assert response.json()["treasury"]["totalUSD"] == 0.0


def test_dashboard_error_body(make_context, monkeypatch):
    """An aggregation that raises is reported as a 500 with a fixed error body."""

    async def broken(self):
        raise RuntimeError("boom")

    monkeypatch.setattr("treasury_dashboard.core.aggregator.DashboardAggregator.aggregate", broken)
    with TestClient(create_app(make_context())) as client:
        response = client.get("/api/dashboard")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch dashboard data"}
