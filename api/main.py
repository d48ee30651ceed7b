"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import api.routes as routes

logging.basicConfig(
    level=getattr(logging, routes.settings.LOG_LEVEL.upper(), logging.DEBUG),
    format="%(asctime)s  %(name)-22s  %(levelname)-7s  %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("api.startup")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Model is loaded exactly once, before the first request
    if await routes.context.startup():
        logger.info(f"classifier ready: {routes.context.total_classes} classes")
    else:
        logger.warning("classifier NOT available - detection disabled")
    yield
    await routes.context.shutdown()


app = FastAPI(title="Pet Detector API", version="1.0.0", lifespan=lifespan)
app.include_router(router=routes.router)


@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
