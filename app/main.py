from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import health_router, router
from datastore.readings_table import build_default_table
from logging_config import configure_logging
from services.chat import build_default_responder
from services.engine import build_default_engine
from services.feeder import SimulationFeeder
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    feeder = None
    if settings.feeder_enabled:
        feeder = SimulationFeeder(
            engine=build_default_engine(),
            table=build_default_table(),
            interval_ms=settings.tick_interval_ms,
            responder=build_default_responder(),
            recommendation_interval_ms=settings.recommendation_interval_ms,
        )
        feeder.start()
    try:
        yield
    finally:
        if feeder is not None:
            feeder.stop()
        build_default_responder.cache_clear()
        build_default_engine.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Flood Watch",
        description="Data-provider API for the Petropavl flood monitoring dashboard.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(health_router)
    return app

app = create_app()
