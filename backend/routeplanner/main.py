from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routeplanner.api.routes import router
from routeplanner.core.config import get_settings
from routeplanner.core.logging import configure_logging
from routeplanner.services.osrm import OSRMClient


settings = get_settings()
configure_logging(settings.debug)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    async with OSRMClient.from_settings(settings) as client:
        app.state.osrm_client = client
        yield
    app.state.osrm_client = None


app = FastAPI(
    title="Route Planner API", version="0.1.0", debug=settings.debug, lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Return basic service health."""

    return {"status": "ok"}
