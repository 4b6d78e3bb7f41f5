"""
HTTP API exposing the dashboard snapshot.

Endpoints:
- ``GET /api/dashboard``: fresh snapshot as camelCase JSON
- ``GET /health``: liveness probe
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from treasury_dashboard.core.aggregator import DashboardAggregator
from treasury_dashboard.core.context import DashboardContext, build_context
from treasury_dashboard.core.refresher import DashboardRefresher
from treasury_dashboard.data.loader import DashboardConfig, load_config

logger = logging.getLogger(__name__)

DASHBOARD_ERROR = "Failed to fetch dashboard data"


def create_app(context: DashboardContext | None = None, config: DashboardConfig | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters
    ----------
    context : DashboardContext | None
        Source clients to aggregate from. When None, one is built from the
        loaded configuration at startup and closed at shutdown; a context
        passed in is left open for the caller to close.
    config : DashboardConfig | None
        Configuration for the context built at startup. When None, it is
        loaded from ``$DASHBOARD_CONFIG`` or the bundled file. Ignored when
        ``context`` is given.

    Returns
    -------
    FastAPI
        Application with the dashboard and health routes

    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = context is None
        ctx = build_context(config or load_config()) if owned else context
        app.state.context = ctx
        app.state.refresher = DashboardRefresher(DashboardAggregator(ctx))
        logger.info("Dashboard API started")
        try:
            yield
        finally:
            if owned:
                await ctx.aclose()
            logger.info("Dashboard API stopped")

    app = FastAPI(
        title="Subnet Treasury Dashboard",
        description="Treasury balances, burn rate, staking and trades for a Bittensor subnet",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/api/dashboard")
    async def dashboard(request: Request) -> JSONResponse:
        """Aggregate every source into a fresh snapshot."""
        refresher: DashboardRefresher = request.app.state.refresher
        try:
            snapshot = await refresher.refresh()
        except Exception:
            logger.exception("Error fetching dashboard data")
            return JSONResponse(status_code=500, content={"error": DASHBOARD_ERROR})
        return JSONResponse(content=snapshot.to_json_dict())

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "healthy"}

    return app
