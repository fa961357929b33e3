from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mcaptracker.api.routes import router
from mcaptracker.config.settings import settings
from mcaptracker.db.session import AsyncSessionLocal, init_models
from mcaptracker.jobs.scheduler import BackgroundJobs
from mcaptracker.logging_config import setup_logging
from mcaptracker.state import TrackerState
from mcaptracker.valuation.store import STORE_ERRORS, ValuationStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    try:
        await init_models()
    except STORE_ERRORS:
        logger.exception("Could not initialise the MCAP table; reads will fail until the DB is reachable")

    tracker = TrackerState(mint=settings.token_mint, sol_price=settings.default_sol_price)
    store = ValuationStore(tracker, AsyncSessionLocal)
    jobs = BackgroundJobs(tracker, store)
    app.state.tracker = tracker
    app.state.store = store
    app.state.jobs = jobs

    jobs.start()
    try:
        yield
    finally:
        await jobs.stop()


def create_app() -> FastAPI:
    app = FastAPI(title="MCAP Tracker", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
