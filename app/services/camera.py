"""
Camera session: owns the single camera stream of the device.

The stream is opened for a facing mode (front "user" / rear "environment"
camera) and released, stopping every track, after a capture, when the client
leaves the capture view, before reopening with another facing mode, and on
shutdown.
"""
import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

import cv2
import numpy as np

from app.config import CAMERA_ENVIRONMENT_INDEX, CAMERA_USER_INDEX
from app.exceptions import CameraPermissionError, CaptureError
from app.models import ImagePayload
from app.services.image_acquisition import payload_from_frame

logger = logging.getLogger(__name__)


class FacingMode(str, Enum):
    USER = "user"
    ENVIRONMENT = "environment"


class VideoTrack:
    """A hardware video track backed by a ``cv2.VideoCapture``-like handle"""

    def __init__(self, capture):
        self._capture = capture
        self.stopped = False

    def read(self) -> Optional[np.ndarray]:
        if self.stopped:
            return None
        ok, frame = self._capture.read()
        return frame if ok else None

    def stop(self):
        if self.stopped:
            return
        self._capture.release()
        self.stopped = True


class MediaStream:
    def __init__(self, tracks: List[VideoTrack], facing_mode: FacingMode):
        self._tracks = list(tracks)
        self.facing_mode = facing_mode

    def get_tracks(self) -> List[VideoTrack]:
        return list(self._tracks)

    @property
    def active(self) -> bool:
        return any(not t.stopped for t in self._tracks)

    def stop(self):
        for track in self._tracks:
            track.stop()


def open_camera_stream(facing_mode: FacingMode) -> MediaStream:
    """Open the device camera for ``facing_mode`` with OpenCV"""
    index = CAMERA_ENVIRONMENT_INDEX if facing_mode == FacingMode.ENVIRONMENT else CAMERA_USER_INDEX
    capture = cv2.VideoCapture(index)
    if not capture.isOpened():
        capture.release()
        raise CameraPermissionError(
            f"Camera {index} ({facing_mode.value}) is unavailable or access was denied"
        )
    return MediaStream([VideoTrack(capture)], facing_mode)


class CameraSession:
    def __init__(
        self,
        open_stream: Callable[[FacingMode], MediaStream] = open_camera_stream,
        facing_mode: FacingMode = FacingMode.USER,
    ):
        self._open_stream = open_stream
        self.facing_mode = facing_mode
        self._stream: Optional[MediaStream] = None
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        with self._lock:
            return self._stream is not None and self._stream.active

    def start(self, facing_mode: Optional[FacingMode] = None) -> FacingMode:
        """Open the camera; raises CameraPermissionError when it cannot be opened"""
        with self._lock:
            if facing_mode is not None:
                self.facing_mode = FacingMode(facing_mode)
            self.release()
            try:
                self._stream = self._open_stream(self.facing_mode)
            except CameraPermissionError:
                logger.error(f"Error accessing camera ({self.facing_mode.value})")
                raise
            except Exception as e:
                logger.error(f"Error accessing camera ({self.facing_mode.value}): {e}", exc_info=True)
                raise CameraPermissionError(str(e)) from e
            logger.info(f"✓ Camera started ({self.facing_mode.value})")
            return self.facing_mode

    def toggle_facing(self) -> FacingMode:
        """Switch front/rear camera, reopening the stream when one is active"""
        with self._lock:
            new_mode = FacingMode.USER if self.facing_mode == FacingMode.ENVIRONMENT else FacingMode.ENVIRONMENT
            if self.active:
                return self.start(new_mode)
            self.facing_mode = new_mode
            return new_mode

    def capture(self) -> ImagePayload:
        """Grab the current frame, encode it, and release the camera"""
        with self._lock:
            if not self.active:
                raise CaptureError("Camera is not active")
            try:
                frame = self._stream.get_tracks()[0].read()
                if frame is None:
                    raise CaptureError("Could not capture image from camera.")
                return payload_from_frame(frame)
            finally:
                self.release()

    def release(self):
        """Stop every track of the active stream; no-op without one"""
        with self._lock:
            if self._stream is None:
                return
            stream, self._stream = self._stream, None
            stream.stop()
            logger.info(f"Camera released ({stream.facing_mode.value})")
