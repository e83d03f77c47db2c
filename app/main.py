"""
FastAPI application for the Influencer Studio backend.

Pose choreography and image synthesis on Replicate. Long-running
synthesis jobs are submitted asynchronously, recorded in the prediction
store and resolved by client polling and/or the provider webhook.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from auth.models import engine
from auth.router import router as auth_router
from core.config import CORS_ORIGINS, MEDIA_DIR, MEDIA_URL_PATH, webhook_url
from predictions.models import init_db
from predictions.router import router as webhook_router
from studio.router import router as studio_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Influencer Studio")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create users and predictions tables
init_db()

# Include routers
app.include_router(auth_router)
app.include_router(studio_router)
app.include_router(webhook_router)

# Serve images saved to the media library
MEDIA_DIR.mkdir(parents=True, exist_ok=True)
app.mount(MEDIA_URL_PATH, StaticFiles(directory=str(MEDIA_DIR)), name="media")

if webhook_url() is None:
    logger.warning("PUBLIC_BASE_URL not set - webhooks disabled, predictions resolve by polling only")


@app.get("/health")
async def health():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}", exc_info=True)
        return {"status": "fail"}
