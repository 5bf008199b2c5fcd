"""
End-to-end pipeline runs against a scripted AI client.
"""
import asyncio
import random

import pytest

from app.exceptions import DetectionFailure, RemedyFailure
from app.models import NO_DISEASE, AnalysisRecord, DetectionResult, RemedyResult
from app.services.orchestrator import AnalysisOrchestrator
from app.services.pipeline import PipelineStatus


def test_scenario_known_plant_completes(orchestrator, fake_ai, history, image_a):
    state = asyncio.run(orchestrator.analyze(image_a))

    assert state.status == PipelineStatus.COMPLETED
    assert len(history) == 1
    record = history.records[0]
    assert record.plant_name == "Tomato"
    assert record.disease == "Blight"
    assert record.confidence == 0.77
    assert record.causes == ["Fungal infection"]
    assert record.remedies == ["Remove affected leaves"]
    assert record.supplements == ["Copper fungicide"]
    assert record.image == image_a.to_data_uri()
    assert fake_ai.remedy_calls == [("Blight", "Plant name: Tomato, Disease: Blight")]


def test_scenario_unknown_plant_skips_remedy(fake_ai_cls, history, image_b):
    ai = fake_ai_cls(detection=DetectionResult(plant_name="unknown", disease="", confidence=0.3))
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    state = asyncio.run(orchestrator.analyze(image_b))

    assert state.status == PipelineStatus.UNKNOWN_PLANT
    assert ai.remedy_calls == []
    assert len(history) == 0
    assert orchestrator.drain_notifications() == []


def test_scenario_detection_error_fails(fake_ai_cls, history, image_a):
    ai = fake_ai_cls(detect_error=DetectionFailure("Model service error: 429"))
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    state = asyncio.run(orchestrator.analyze(image_a))

    assert state.status == PipelineStatus.FAILED
    assert state.error == "Model service error: 429"
    assert ai.remedy_calls == []
    assert len(history) == 0
    notifications = orchestrator.drain_notifications()
    assert [(n.variant, n.title) for n in notifications] == [("destructive", "Error")]
    assert orchestrator.drain_notifications() == []


def test_remedy_error_fails_without_partial_result(fake_ai_cls, tomato_detection, history, image_a):
    ai = fake_ai_cls(detection=tomato_detection, remedy_error=RemedyFailure("timed out"))
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    state = asyncio.run(orchestrator.analyze(image_a))

    assert state.status == PipelineStatus.FAILED
    assert state.detection is None and state.remedy is None
    assert len(history) == 0


def test_unexpected_error_is_contained(fake_ai_cls, history, image_a):
    ai = fake_ai_cls(detect_error=KeyError("choices"))
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    state = asyncio.run(orchestrator.analyze(image_a))

    assert state.status == PipelineStatus.FAILED
    assert state.error


def test_failure_leaves_pipeline_ready(fake_ai_cls, tomato_detection, tomato_remedy, history, image_a, image_b):
    ai = fake_ai_cls(detect_error=DetectionFailure("offline"))
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history, jitter=0.0)
    asyncio.run(orchestrator.analyze(image_a))

    ai.detect_error = None
    ai.detection, ai.remedy = tomato_detection, tomato_remedy
    state = asyncio.run(orchestrator.analyze(image_b))

    assert state.status == PipelineStatus.COMPLETED
    assert state.run_id == 2
    assert state.error is None


def test_healthy_plant_gets_maintenance_advice(fake_ai_cls, history, image_a):
    ai = fake_ai_cls(
        detection=DetectionResult(plant_name="Rose", disease=NO_DISEASE, confidence=1.0),
        remedy=RemedyResult(possible_causes=["Good care"], remedies=["Water weekly"]),
    )
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    state = asyncio.run(orchestrator.analyze(image_a))

    assert state.status == PipelineStatus.COMPLETED
    assert ai.remedy_calls[0][0] == NO_DISEASE
    assert history.records[0].supplements is None


def test_history_is_most_recent_first(fake_ai_cls, tomato_remedy, history, image_a, image_b):
    history.prepend(AnalysisRecord(id="old", plant_name="Basil", disease="Downy mildew"))
    ai = fake_ai_cls(remedy=tomato_remedy)
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    ai.detection = DetectionResult(plant_name="Tomato", disease="Blight", confidence=0.8)
    asyncio.run(orchestrator.analyze(image_a))
    ai.detection = DetectionResult(plant_name="Pepper", disease="Bacterial spot", confidence=0.6)
    asyncio.run(orchestrator.analyze(image_b))

    assert [r.plant_name for r in history.records] == ["Pepper", "Tomato", "Basil"]
    assert len({r.id for r in history.records}) == 3


@pytest.mark.parametrize("plant_name, expect_remedy", [
    ("Tomato", True),
    ("unknown", False),
    ("", False),
])
def test_remedy_iff_known_plant(fake_ai_cls, tomato_remedy, history, image_a, plant_name, expect_remedy):
    ai = fake_ai_cls(
        detection=DetectionResult(plant_name=plant_name, disease="Blight", confidence=0.7),
        remedy=tomato_remedy,
    )
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

    state = asyncio.run(orchestrator.analyze(image_a))

    assert (state.remedy is not None) is expect_remedy
    assert bool(ai.remedy_calls) is expect_remedy
    assert len(history) == (1 if expect_remedy else 0)


@pytest.mark.parametrize("raw", [0.0, 0.5, 1.0])
def test_displayed_confidence_is_smoothed(fake_ai_cls, tomato_remedy, history, image_a, raw):
    ai = fake_ai_cls(
        detection=DetectionResult(plant_name="Tomato", disease="Blight", confidence=raw),
        remedy=tomato_remedy,
    )
    orchestrator = AnalysisOrchestrator(ai_client=ai, history=history, jitter=0.1, rng=random.Random(3))

    state = asyncio.run(orchestrator.analyze(image_a))

    assert 0.5 <= state.confidence <= 0.99
    assert history.records[0].confidence == state.confidence


def test_superseded_run_result_is_discarded(fake_ai_cls, tomato_remedy, history, image_a, image_b):
    class GatedAI(fake_ai_cls):
        """First detection waits until released; later ones answer at once"""

        def __init__(self):
            super().__init__(remedy=tomato_remedy)
            self.gate = None

        async def detect(self, image):
            self.detect_calls.append(image)
            if len(self.detect_calls) == 1:
                await self.gate.wait()
                return DetectionResult(plant_name="Tomato", disease="Blight", confidence=0.7)
            return DetectionResult(plant_name="Rose", disease="Black spot", confidence=0.9)

    async def scenario():
        ai = GatedAI()
        ai.gate = asyncio.Event()
        orchestrator = AnalysisOrchestrator(ai_client=ai, history=history)

        first = asyncio.create_task(orchestrator.analyze(image_a))
        await asyncio.sleep(0)
        await orchestrator.analyze(image_b)
        ai.gate.set()
        await first
        return ai, orchestrator

    ai, orchestrator = asyncio.run(scenario())

    assert orchestrator.state.run_id == 2
    assert orchestrator.state.status == PipelineStatus.COMPLETED
    assert orchestrator.state.detection.plant_name == "Rose"
    assert [call[0] for call in ai.remedy_calls] == ["Black spot"]
    assert [r.plant_name for r in history.records] == ["Rose"]
