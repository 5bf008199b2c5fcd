# PlantGuard AI - Plant Disease Detection API v1.0.0
import logging
import os
import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Import config
from app.config import (
    AI_BASE_URL,
    DETECTION_MODEL,
    REMEDY_MODEL,
    HISTORY_STORAGE_PATH,
    CONFIDENCE_JITTER,
    LOG_LEVEL
)

# Import services
from app.dependencies import get_ai_client, get_orchestrator, shutdown_services
from app.routers import analysis, camera, health
from app.utils.rate_limiter import limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# ============================================================================#
# Lifespan Events
# ============================================================================#
@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    # Startup
    ai_client = get_ai_client()
    orchestrator = get_orchestrator()
    logger.info("=" * 60)
    logger.info("Starting PlantGuard AI (Plant Disease Detection)")
    logger.info(f"AI API: {'✓' if ai_client.configured else '✗'} ({AI_BASE_URL})")
    logger.info(f"Detection model: {DETECTION_MODEL}")
    logger.info(f"Remedy model: {REMEDY_MODEL}")
    logger.info(f"History: {len(orchestrator.history)} entries ({HISTORY_STORAGE_PATH})")
    logger.info(f"Confidence jitter: ±{CONFIDENCE_JITTER}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    await shutdown_services()


# Initialize FastAPI app
app = FastAPI(
    title="PlantGuard AI",
    description="AI-powered plant disease detection with remedy suggestions",
    version="1.0.0",
    lifespan=lifespan
)

# Initialize Rate Limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS Middleware for the browser client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(analysis.router)
app.include_router(camera.router)


if __name__ == "__main__":
    # Port from the environment (cloud platforms set PORT), default 8080
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run('app.main:app', host='0.0.0.0', port=port, reload=True)
