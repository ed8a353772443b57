import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from credibot.api.router import api_router
from credibot.core.config import check_settings, settings
from credibot.core.database import engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Missing credentials are reported, not fatal
    check_settings(settings)
    logger.info(f"Storage backend: {settings.STORAGE_BACKEND}")

    yield
    await engine.dispose()


app = FastAPI(title="Credibot API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "HEAD", "PUT", "DELETE", "PATCH"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Credibot API running"}


if __name__ == "__main__":
    uvicorn.run("credibot.main:app", host="0.0.0.0", port=settings.PORT)
