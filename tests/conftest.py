"""
Shared fixtures: a scriptable AI client, camera fakes and image samples.
"""
import io
import os
import sys
import tempfile

# Settings must be in place before app.config is imported
os.environ.setdefault("ANALYZE_RATE_LIMIT", "1000/minute")
os.environ.setdefault("HISTORY_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "plantguard-test-storage.json"))
os.environ.setdefault("OPENROUTER_API_KEY", "")

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest
from PIL import Image

from app.exceptions import CameraPermissionError
from app.models import DetectionResult, ImagePayload, RemedyResult
from app.services.ai_client import PlantAIClient
from app.services.camera import CameraSession, MediaStream, VideoTrack
from app.services.history import HistoryStore
from app.services.local_storage import LocalStorage
from app.services.orchestrator import AnalysisOrchestrator


class FakePlantAI(PlantAIClient):
    """Returns canned results and records every call"""

    def __init__(self, detection=None, remedy=None, detect_error=None, remedy_error=None):
        self.detection = detection
        self.remedy = remedy
        self.detect_error = detect_error
        self.remedy_error = remedy_error
        self.detect_calls = []
        self.remedy_calls = []

    async def detect(self, image):
        self.detect_calls.append(image)
        if self.detect_error:
            raise self.detect_error
        return self.detection

    async def suggest_remedies(self, disease, plant_description):
        self.remedy_calls.append((disease, plant_description))
        if self.remedy_error:
            raise self.remedy_error
        return self.remedy


class FakeCapture:
    """Stands in for cv2.VideoCapture"""

    def __init__(self, frame=None):
        self.frame = frame
        self.release_count = 0

    def read(self):
        return self.frame is not None, self.frame

    def release(self):
        self.release_count += 1


class FakeCameraOpener:
    def __init__(self, frame=None, deny=False):
        self.frame = frame
        self.deny = deny
        self.opened = []

    def __call__(self, facing_mode):
        if self.deny:
            raise CameraPermissionError("Permission denied")
        capture = FakeCapture(self.frame)
        self.opened.append((facing_mode, capture))
        return MediaStream([VideoTrack(capture)], facing_mode)


def _encode(fmt: str) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 6), (34, 139, 34)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return _encode("PNG")


@pytest.fixture
def jpeg_bytes():
    return _encode("JPEG")


@pytest.fixture
def gif_bytes():
    return _encode("GIF")


@pytest.fixture
def image_a(jpeg_bytes):
    return ImagePayload(data=jpeg_bytes, mime_type="image/jpeg")


@pytest.fixture
def image_b(png_bytes):
    return ImagePayload(data=png_bytes, mime_type="image/png")


@pytest.fixture
def frame():
    return np.full((48, 64, 3), 120, dtype=np.uint8)


@pytest.fixture
def tomato_detection():
    return DetectionResult(plant_name="Tomato", disease="Blight", confidence=0.77)


@pytest.fixture
def tomato_remedy():
    return RemedyResult(
        possible_causes=["Fungal infection"],
        remedies=["Remove affected leaves"],
        supplements=["Copper fungicide"],
    )


@pytest.fixture
def fake_ai_cls():
    return FakePlantAI


@pytest.fixture
def fake_opener_cls():
    return FakeCameraOpener


@pytest.fixture
def fake_capture_cls():
    return FakeCapture


@pytest.fixture
def fake_ai(tomato_detection, tomato_remedy):
    return FakePlantAI(detection=tomato_detection, remedy=tomato_remedy)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "local_storage.json"))


@pytest.fixture
def history(storage):
    return HistoryStore(storage)


@pytest.fixture
def orchestrator(fake_ai, history):
    return AnalysisOrchestrator(ai_client=fake_ai, history=history, jitter=0.0)


@pytest.fixture
def camera_opener(frame):
    return FakeCameraOpener(frame=frame)


@pytest.fixture
def camera_session(camera_opener):
    return CameraSession(open_stream=camera_opener)
