"""
Error taxonomy for image acquisition, remote inference and local storage.
"""


class UnsupportedImageError(ValueError):
    """Upload is empty, too large, or not an accepted raster format"""


class CameraPermissionError(PermissionError):
    """Camera could not be opened (permission denied or no device)"""


class CaptureError(RuntimeError):
    """A frame could not be read from the active camera stream"""


class PlantAIError(Exception):
    """Base class for remote model call failures"""


class DetectionFailure(PlantAIError):
    """Detection call errored or returned unusable data"""


class RemedyFailure(PlantAIError):
    """Remedy call errored or returned unusable data"""


class StorageQuotaExceeded(OSError):
    """Local storage write would exceed the configured quota"""
