"""
Analysis pipeline state machine.

States:  idle -> analyzing -> unknown-plant | completed | failed
A new image moves any state back to analyzing under a fresh run id.

``transition`` is pure: it takes the live state and one event and returns the
next state plus the commands the runner must execute (model calls, history
append, notification). Events carrying a superseded run id are dropped, so a
late answer from an older run never reaches the display.
"""
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

from app.config import CONFIDENCE_JITTER, CONFIDENCE_MAX, CONFIDENCE_MIN
from app.models import (
    NO_DISEASE,
    AnalysisRecord,
    DetectionResult,
    ImagePayload,
    Notification,
    PipelineStateView,
    RemedyResult,
)

logger = logging.getLogger(__name__)


class PipelineStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    UNKNOWN_PLANT = "unknown-plant"
    COMPLETED = "completed"
    FAILED = "failed"


class Stage(str, Enum):
    DETECTION = "detection"
    REMEDY = "remedy"


@dataclass(frozen=True)
class PipelineState:
    status: PipelineStatus = PipelineStatus.IDLE
    run_id: int = 0
    image: Optional[ImagePayload] = None
    detection: Optional[DetectionResult] = None
    confidence: Optional[float] = None  # smoothed display value
    remedy: Optional[RemedyResult] = None
    error: Optional[str] = None


# =============================================================================
# Events
# =============================================================================
@dataclass(frozen=True)
class ImageAcquired:
    run_id: int
    image: ImagePayload


@dataclass(frozen=True)
class DetectionSucceeded:
    run_id: int
    result: DetectionResult
    confidence: float


@dataclass(frozen=True)
class RemedySucceeded:
    run_id: int
    result: RemedyResult
    record_id: str


@dataclass(frozen=True)
class StageFailed:
    run_id: int
    stage: Stage
    message: str


Event = Union[ImageAcquired, DetectionSucceeded, RemedySucceeded, StageFailed]


# =============================================================================
# Commands
# =============================================================================
@dataclass(frozen=True)
class RequestDetection:
    run_id: int
    image: ImagePayload


@dataclass(frozen=True)
class RequestRemedy:
    run_id: int
    disease: str
    plant_description: str


@dataclass(frozen=True)
class AppendHistory:
    record: AnalysisRecord


@dataclass(frozen=True)
class Notify:
    notification: Notification


Command = Union[RequestDetection, RequestRemedy, AppendHistory, Notify]


def smooth_confidence(raw: float, jitter: float = CONFIDENCE_JITTER, rng: Optional[random.Random] = None) -> float:
    """Display smoothing: raw confidence plus uniform jitter, clamped to [0.5, 0.99]"""
    rng = rng or random
    value = raw + rng.uniform(-jitter, jitter) if jitter else raw
    return max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, value))


def remedy_request_for(detection: DetectionResult) -> Tuple[str, str]:
    """Disease label (sentinel when empty) and the description sent to the remedy stage"""
    disease = detection.disease or NO_DISEASE
    return disease, f"Plant name: {detection.plant_name}, Disease: {disease}"


def transition(state: PipelineState, event: Event) -> Tuple[PipelineState, List[Command]]:
    if isinstance(event, ImageAcquired):
        if event.run_id <= state.run_id:
            logger.debug(f"Ignoring out-of-order acquisition for run {event.run_id}")
            return state, []
        new_state = PipelineState(
            status=PipelineStatus.ANALYZING,
            run_id=event.run_id,
            image=event.image,
        )
        return new_state, [RequestDetection(run_id=event.run_id, image=event.image)]

    if event.run_id != state.run_id or state.status != PipelineStatus.ANALYZING:
        logger.info(f"Discarding stale {type(event).__name__} from run {event.run_id} (live run {state.run_id})")
        return state, []

    if isinstance(event, DetectionSucceeded):
        if state.detection is not None:
            return state, []
        result = event.result
        if result.is_unknown_plant:
            return replace(
                state,
                status=PipelineStatus.UNKNOWN_PLANT,
                detection=result,
                confidence=event.confidence,
                remedy=None,
            ), []
        disease, description = remedy_request_for(result)
        return replace(state, detection=result, confidence=event.confidence), [
            RequestRemedy(run_id=state.run_id, disease=disease, plant_description=description)
        ]

    if isinstance(event, RemedySucceeded):
        detection = state.detection
        if detection is None or detection.is_unknown_plant:
            return state, []
        remedy = event.result
        record = AnalysisRecord(
            id=event.record_id,
            image=state.image.to_data_uri() if state.image else None,
            plant_name=detection.plant_name,
            disease=detection.disease,
            confidence=state.confidence,
            causes=list(remedy.possible_causes),
            remedies=list(remedy.remedies),
            supplements=list(remedy.supplements) if remedy.supplements else None,
        )
        return replace(state, status=PipelineStatus.COMPLETED, remedy=remedy), [AppendHistory(record=record)]

    if isinstance(event, StageFailed):
        failed = replace(
            state,
            status=PipelineStatus.FAILED,
            detection=None,
            confidence=None,
            remedy=None,
            error=event.message,
        )
        notification = Notification(variant="destructive", title="Error", description=event.message)
        return failed, [Notify(notification=notification)]

    raise TypeError(f"Unknown pipeline event: {event!r}")


def to_view(state: PipelineState) -> PipelineStateView:
    """Flatten the live state for the client"""
    detection = state.detection
    remedy = state.remedy
    return PipelineStateView(
        status=state.status.value,
        run_id=state.run_id,
        image=state.image.to_data_uri() if state.image else None,
        plant_name=detection.plant_name if detection else None,
        disease=detection.disease if detection else None,
        no_disease=detection is not None and (detection.disease or NO_DISEASE) == NO_DISEASE,
        confidence=state.confidence,
        causes=list(remedy.possible_causes) if remedy else None,
        remedies=list(remedy.remedies) if remedy else None,
        supplements=list(remedy.supplements) if remedy and remedy.supplements else None,
        error=state.error,
    )
