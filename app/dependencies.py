"""
Process-wide service instances, exposed as FastAPI dependencies.
"""
import logging
from typing import Optional

from app.config import HISTORY_STORAGE_KEY, HISTORY_STORAGE_PATH
from app.services.ai_client import OpenRouterPlantAI
from app.services.camera import CameraSession
from app.services.history import HistoryStore
from app.services.local_storage import LocalStorage
from app.services.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)

ai_client: Optional[OpenRouterPlantAI] = None
orchestrator: Optional[AnalysisOrchestrator] = None
camera: Optional[CameraSession] = None


def get_ai_client() -> OpenRouterPlantAI:
    global ai_client
    if ai_client is None:
        ai_client = OpenRouterPlantAI.from_config()
    return ai_client


def get_orchestrator() -> AnalysisOrchestrator:
    global orchestrator
    if orchestrator is None:
        history = HistoryStore(LocalStorage(HISTORY_STORAGE_PATH), key=HISTORY_STORAGE_KEY)
        orchestrator = AnalysisOrchestrator(ai_client=get_ai_client(), history=history)
    return orchestrator


def get_camera() -> CameraSession:
    global camera
    if camera is None:
        camera = CameraSession()
    return camera


async def shutdown_services():
    """Release the camera and close the AI client"""
    global ai_client, orchestrator, camera
    if camera is not None:
        camera.release()
    if ai_client is not None:
        await ai_client.close()
    ai_client = orchestrator = camera = None
    logger.info("Services shut down")
