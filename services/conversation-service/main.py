"""FastAPI application entry point."""

import asyncio
from contextlib import asynccontextmanager

from ddtrace import patch_all
from dubbing_common.logging import setup_logging
from fastapi import FastAPI

from dependencies import get_http_client, get_pipeline, get_storage
from routes import audio_router, conversations_router, languages_router

patch_all()

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await asyncio.to_thread(get_storage().ensure_bucket_exists)
    yield
    await get_pipeline().shutdown()
    await get_http_client().aclose()
    logger.info("Conversation service stopped")


app = FastAPI(title="Clinical Voice Dubbing Service", lifespan=lifespan)
app.include_router(conversations_router)
app.include_router(languages_router)
app.include_router(audio_router)
