"""Main module for the staking dashboard service."""
import logging
import subprocess
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from staking_dashboard.config import configure_logging
from staking_dashboard.container import Container
from staking_dashboard.db.sessions import init_db
from staking_dashboard.routers import (admin_router, auth_router,
                                       coins_router, portfolio_router,
                                       prices_router, staking_router,
                                       users_router)
from staking_dashboard.services import ServiceErrorMapper, StakingError

logger = logging.getLogger(__name__)

_service_errors = ServiceErrorMapper()


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create tables and settings at startup, run the reward job, close clients on shutdown."""
    container: Container = fastapi_app.state.container
    settings = container.settings()
    engine = container.engine()
    init_db(engine)

    master_wallet = container.master_wallet()
    with Session(engine) as session:
        row = container.settings_service().get(session)
        if row.master_wallet_address:
            master_wallet.address = row.master_wallet_address
    await master_wallet.initialize()

    scheduler = None
    if settings.reward_job_enabled:
        scheduler = container.reward_scheduler()
        scheduler.start()

    yield

    if scheduler is not None:
        await scheduler.stop()

    # Close provider resources (e.g. httpx clients)
    for closable in (container.price_service(), master_wallet):
        try:
            await closable.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error closing %s: %s", type(closable).__name__, exc)


async def staking_error_handler(request: Request, exc: StakingError) -> JSONResponse:
    """Render service-layer errors as {"detail": ...} with the mapped status."""
    status_code, detail = _service_errors.to_http(exc)
    if status_code >= 500:
        logger.error("Unhandled service error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


def create_app(container: Container | None = None) -> FastAPI:
    """Build the application around a DI container (a fresh one by default)."""
    fastapi_app = FastAPI(
        title="Staking Dashboard",
        description="ETH staking with simulated reward accrual, referrals and operator reports",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.container = container or Container()
    fastapi_app.add_exception_handler(StakingError, staking_error_handler)

    fastapi_app.include_router(auth_router)
    fastapi_app.include_router(users_router)
    fastapi_app.include_router(staking_router)
    fastapi_app.include_router(portfolio_router)
    fastapi_app.include_router(coins_router)
    fastapi_app.include_router(prices_router)
    fastapi_app.include_router(admin_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run staking-dashboard`."""
    configure_logging()
    uvicorn.run("staking_dashboard.main:app", host="127.0.0.1", port=8001)


def run_dev():
    """Run the development server with Postgres running via Docker."""
    configure_logging("DEBUG")
    project_root = Path(__file__).resolve().parent.parent.parent
    try:
        subprocess.run(
            ["docker", "compose", "up", "-d", "postgres"],
            cwd=project_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        detail = getattr(e, "stderr", None) or getattr(e, "stdout", None) or str(e)
        print("Failed to start Postgres:", detail, file=sys.stderr)
        sys.exit(1)
    uvicorn.run("staking_dashboard.main:app", host="0.0.0.0", port=8000, reload=True)
