import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from app.config import ANALYZE_RATE_LIMIT
from app.dependencies import get_camera, get_orchestrator
from app.exceptions import CameraPermissionError, CaptureError
from app.models import Notification, PipelineStateView
from app.services.camera import CameraSession, FacingMode
from app.services.orchestrator import AnalysisOrchestrator
from app.utils.rate_limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/camera", tags=["camera"])

CAMERA_DENIED = Notification(
    variant="destructive",
    title="Camera Access Denied",
    description="Please enable camera permissions in your device settings to use this app.",
)


class CameraStartRequest(BaseModel):
    facing_mode: Optional[FacingMode] = None


class CameraStatus(BaseModel):
    active: bool
    facing_mode: FacingMode


def _status(camera: CameraSession) -> CameraStatus:
    return CameraStatus(active=camera.active, facing_mode=camera.facing_mode)


@router.post("/start", response_model=CameraStatus)
def start_camera(
    body: Optional[CameraStartRequest] = None,
    camera: CameraSession = Depends(get_camera),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    try:
        camera.start(body.facing_mode if body else None)
    except CameraPermissionError as e:
        orchestrator.notify(CAMERA_DENIED)
        raise HTTPException(status_code=403, detail=str(e))
    return _status(camera)


@router.post("/toggle", response_model=CameraStatus)
def toggle_camera(
    camera: CameraSession = Depends(get_camera),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    try:
        camera.toggle_facing()
    except CameraPermissionError as e:
        orchestrator.notify(CAMERA_DENIED)
        raise HTTPException(status_code=403, detail=str(e))
    return _status(camera)


@router.post("/stop", response_model=CameraStatus)
def stop_camera(camera: CameraSession = Depends(get_camera)):
    camera.release()
    return _status(camera)


@router.post("/capture", response_model=PipelineStateView)
@limiter.limit(ANALYZE_RATE_LIMIT)
async def capture_and_analyze(
    request: Request,
    camera: CameraSession = Depends(get_camera),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    try:
        image = await run_in_threadpool(camera.capture)
    except CaptureError as e:
        logger.warning(f"Capture failed: {e}")
        orchestrator.notify(Notification(
            variant="destructive",
            title="Error",
            description="Could not capture image from camera.",
        ))
        raise HTTPException(status_code=409, detail=str(e))

    await orchestrator.analyze(image)
    return orchestrator.view()
