import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from app.config import ANALYZE_RATE_LIMIT
from app.dependencies import get_orchestrator
from app.exceptions import UnsupportedImageError
from app.models import AnalysisRecord, Notification, PipelineStateView
from app.services.image_acquisition import payload_from_upload
from app.services.orchestrator import AnalysisOrchestrator
from app.utils.rate_limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze", response_model=PipelineStateView)
@limiter.limit(ANALYZE_RATE_LIMIT)
async def analyze_upload(
    request: Request,
    file: UploadFile = File(...),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    data = await file.read()
    try:
        image = payload_from_upload(data, filename=file.filename, content_type=file.content_type)
    except UnsupportedImageError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        orchestrator.notify(Notification(variant="destructive", title="Unsupported Image", description=str(e)))
        raise HTTPException(status_code=415, detail=str(e))

    await orchestrator.analyze(image)
    return orchestrator.view()


@router.get("/state", response_model=PipelineStateView)
async def get_state(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return orchestrator.view()


@router.get("/history", response_model=List[AnalysisRecord])
async def get_history(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return orchestrator.history.records


@router.get("/notifications", response_model=List[Notification])
async def get_notifications(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)):
    return orchestrator.drain_notifications()
