from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from gymflow import __version__
from gymflow.config import Settings
from gymflow.controllers import v1
from gymflow.db import init_db
from gymflow.logger import setup_logging

settings = Settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await asyncio.to_thread(init_db, settings)
    logger.info("GymFlow API %s started", __version__)
    yield


app = FastAPI(
    title="GymFlow Check-in API",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(v1.router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


Instrumentator().instrument(app).expose(app)
