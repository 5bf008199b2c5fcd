"""
Image acquisition: turns an uploaded file or a captured camera frame into an
``ImagePayload`` so the detection stage always sees the same input shape.
"""
import io
import logging
import os
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from app.config import JPEG_QUALITY, MAX_UPLOAD_BYTES
from app.exceptions import CaptureError, UnsupportedImageError
from app.models import ImagePayload

logger = logging.getLogger(__name__)

# Pillow format name -> MIME type
ACCEPTED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
}
ACCEPTED_EXTENSIONS = {".jpeg", ".jpg", ".png"}
# Browsers send image/jpg now and then; octet-stream is sniffed below
ACCEPTED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "application/octet-stream"}


def payload_from_upload(
    data: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> ImagePayload:
    """Validate an uploaded JPEG/PNG and wrap it as a payload"""
    if not data:
        raise UnsupportedImageError("Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise UnsupportedImageError(
            f"Uploaded file is too large ({len(data)} bytes, limit {MAX_UPLOAD_BYTES})"
        )

    if filename:
        ext = os.path.splitext(filename)[1].lower()
        if ext and ext not in ACCEPTED_EXTENSIONS:
            raise UnsupportedImageError(f"Unsupported file type: {ext}")

    if content_type and content_type not in ACCEPTED_CONTENT_TYPES:
        raise UnsupportedImageError(f"Unsupported content type: {content_type}")

    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except Exception as e:
        raise UnsupportedImageError(f"File is not a readable image: {e}") from e

    mime_type = ACCEPTED_FORMATS.get(image_format)
    if not mime_type:
        raise UnsupportedImageError(f"Unsupported image format: {image_format}")

    logger.info(f"Accepted upload {filename or '<unnamed>'} ({mime_type}, {len(data)} bytes)")
    return ImagePayload(data=data, mime_type=mime_type)


def payload_from_frame(frame: np.ndarray, quality: int = JPEG_QUALITY) -> ImagePayload:
    """Encode a BGR camera frame as JPEG at its native resolution"""
    if frame is None or frame.size == 0:
        raise CaptureError("Could not capture image from camera.")

    ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise CaptureError("Could not capture image from camera.")

    height, width = frame.shape[:2]
    logger.info(f"Captured frame {width}x{height} ({buf.size} bytes)")
    return ImagePayload(data=buf.tobytes(), mime_type="image/jpeg")
