import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ============================================================================#
# ENVIRONMENT / SERVICES
# ============================================================================#
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY") or OPENAI_API_KEY  # Gemini via OpenRouter
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://openrouter.ai/api/v1")

# Models used by the two inference stages
DETECTION_MODEL = os.getenv("DETECTION_MODEL", "google/gemini-2.0-flash-001")
REMEDY_MODEL = os.getenv("REMEDY_MODEL", "google/gemini-2.0-flash-001")

# Timeouts for remote model calls (seconds)
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "60"))
API_CONNECT_TIMEOUT = float(os.getenv("API_CONNECT_TIMEOUT", "15"))

# Headers sent to OpenRouter
APP_REFERER = os.getenv("APP_REFERER", "http://localhost:8000")
APP_TITLE = os.getenv("APP_TITLE", "PlantGuard AI")

# ============================================================================#
# LOCAL HISTORY STORAGE
# ============================================================================#
HISTORY_STORAGE_PATH = os.getenv("HISTORY_STORAGE_PATH", "data/local_storage.json")
HISTORY_STORAGE_KEY = os.getenv("HISTORY_STORAGE_KEY", "plantHistory")
LOCAL_STORAGE_QUOTA_BYTES = int(os.getenv("LOCAL_STORAGE_QUOTA_BYTES", str(5 * 1024 * 1024)))

# ============================================================================#
# IMAGE ACQUISITION
# ============================================================================#
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "92"))

# Camera device index per facing mode
CAMERA_USER_INDEX = int(os.getenv("CAMERA_USER_INDEX", "0"))
CAMERA_ENVIRONMENT_INDEX = int(os.getenv("CAMERA_ENVIRONMENT_INDEX", "1"))

# ============================================================================#
# PIPELINE
# ============================================================================#
# Amplitude of the display jitter applied to model confidence (0 disables it)
CONFIDENCE_JITTER = float(os.getenv("CONFIDENCE_JITTER", "0.1"))
CONFIDENCE_MIN = 0.5
CONFIDENCE_MAX = 0.99

# Rate limiting for analysis requests
ANALYZE_RATE_LIMIT = os.getenv("ANALYZE_RATE_LIMIT", "10/minute")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
