import logging
from fastapi import APIRouter, Depends

from app.dependencies import get_ai_client, get_camera, get_orchestrator
from app.services.ai_client import OpenRouterPlantAI
from app.services.camera import CameraSession
from app.services.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root():
    return {
        "status": "online",
        "service": "PlantGuard AI",
        "version": "1.0.0",
        "features": [
            "Plant & Disease Detection (Vision LLM)",
            "Remedy & Supplement Suggestions",
            "Camera Capture",
            "Local Analysis History"
        ]
    }


@router.get("/health")
async def health_check(
    ai_client: OpenRouterPlantAI = Depends(get_ai_client),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    camera: CameraSession = Depends(get_camera),
):
    return {
        "status": "healthy",
        "version": "1.0.0",
        "pipeline": orchestrator.state.status.value,
        "history_entries": len(orchestrator.history),
        "services": {
            "ai": ai_client.configured,
            "camera_active": camera.active
        }
    }
