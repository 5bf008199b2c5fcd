import itertools
import logging
import random
import uuid
from collections import deque
from typing import List, Optional

from app.config import CONFIDENCE_JITTER
from app.exceptions import PlantAIError
from app.models import AnalysisRecord, ImagePayload, Notification, PipelineStateView
from app.services.ai_client import PlantAIClient
from app.services.history import HistoryStore
from app.services.pipeline import (
    AppendHistory,
    Command,
    DetectionSucceeded,
    Event,
    ImageAcquired,
    Notify,
    PipelineState,
    RemedySucceeded,
    RequestDetection,
    RequestRemedy,
    Stage,
    StageFailed,
    smooth_confidence,
    to_view,
    transition,
)

logger = logging.getLogger(__name__)


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__


class AnalysisOrchestrator:
    """
    Runs the detection -> remedy pipeline for each acquired image.

    State changes only go through ``transition``; this class executes the
    commands it returns. Remote-call errors are turned into a ``failed`` state
    plus a notification and are never raised to the caller.
    """

    def __init__(
        self,
        ai_client: PlantAIClient,
        history: HistoryStore,
        jitter: float = CONFIDENCE_JITTER,
        rng: Optional[random.Random] = None,
    ):
        self.ai_client = ai_client
        self.history = history
        self.jitter = jitter
        self.rng = rng or random.Random()
        self._state = PipelineState()
        self._run_ids = itertools.count(1)
        self._notifications: List[Notification] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    def view(self) -> PipelineStateView:
        return to_view(self._state)

    def notify(self, notification: Notification):
        logger.info(f"Notification: {notification.title} - {notification.description}")
        self._notifications.append(notification)

    def drain_notifications(self) -> List[Notification]:
        pending, self._notifications = self._notifications, []
        return pending

    def _dispatch(self, event: Event) -> List[Command]:
        self._state, commands = transition(self._state, event)
        return commands

    async def analyze(self, image: ImagePayload) -> PipelineState:
        """Start a new run for ``image`` and drive it to a terminal state"""
        run_id = next(self._run_ids)
        logger.info(f"🔍 Starting analysis run {run_id} ({image.mime_type}, {len(image.data)} bytes)")

        pending = deque(self._dispatch(ImageAcquired(run_id=run_id, image=image)))
        while pending:
            command = pending.popleft()
            pending.extend(await self._execute(command))

        if self._state.run_id == run_id:
            logger.info(f"Run {run_id} finished: {self._state.status.value}")
        else:
            logger.info(f"Run {run_id} superseded by run {self._state.run_id}")
        return self._state

    async def _execute(self, command: Command) -> List[Command]:
        if isinstance(command, RequestDetection):
            try:
                result = await self.ai_client.detect(command.image)
            except Exception as e:
                logger.error(f"Error analyzing image: {e}", exc_info=not isinstance(e, PlantAIError))
                return self._dispatch(
                    StageFailed(run_id=command.run_id, stage=Stage.DETECTION, message=_error_message(e))
                )
            confidence = smooth_confidence(result.confidence, self.jitter, self.rng)
            return self._dispatch(
                DetectionSucceeded(run_id=command.run_id, result=result, confidence=confidence)
            )

        if isinstance(command, RequestRemedy):
            try:
                result = await self.ai_client.suggest_remedies(command.disease, command.plant_description)
            except Exception as e:
                logger.error(f"Error suggesting remedies: {e}", exc_info=not isinstance(e, PlantAIError))
                return self._dispatch(
                    StageFailed(run_id=command.run_id, stage=Stage.REMEDY, message=_error_message(e))
                )
            return self._dispatch(
                RemedySucceeded(run_id=command.run_id, result=result, record_id=uuid.uuid4().hex)
            )

        if isinstance(command, AppendHistory):
            self._append_history(command.record)
            return []

        if isinstance(command, Notify):
            self.notify(command.notification)
            return []

        raise TypeError(f"Unknown pipeline command: {command!r}")

    def _append_history(self, record: AnalysisRecord):
        self.history.prepend(record)
        logger.info(f"✓ Saved to history: {record.plant_name} / {record.disease or '-'} ({len(self.history)} entries)")
