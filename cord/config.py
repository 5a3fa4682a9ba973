# Central place for runtime settings of the cord guidance assistant
import os
from pathlib import Path

# Vision provider
DEFAULT_MODEL = os.getenv("CORD_MODEL", "gpt-4o-mini")
API_BASE = os.getenv("CORD_API_BASE") or None
REQUEST_TIMEOUT_SEC = float(os.getenv("CORD_REQUEST_TIMEOUT", "60"))

# Screen capture
CAPTURE_INTERVAL_SEC = float(os.getenv("CORD_CAPTURE_INTERVAL", "5"))
JPEG_QUALITY = int(os.getenv("CORD_JPEG_QUALITY", "80"))
MONITOR_INDEX = int(os.getenv("CORD_MONITOR", "1"))  # 0 = all monitors, 1.. = single display

# Step verification, 0 disables the debounce
MIN_VERIFY_INTERVAL_SEC = float(os.getenv("CORD_MIN_VERIFY_INTERVAL", "0"))

# Prompt payload bounds
OCR_PROMPT_CHARS = 500
CHAT_HISTORY_TURNS = 4

# Mouse tracking
MOUSE_HISTORY_LEN = 100
MOUSE_PATH_SEC = 3
MOUSE_CLICKS_SEC = 5

# UI element detection (optional)
ROBOFLOW_API_KEY = os.getenv("ROBOFLOW_API_KEY", "")
ROBOFLOW_BASE_URL = os.getenv("ROBOFLOW_BASE_URL", "https://detect.roboflow.com")
ROBOFLOW_MODEL = os.getenv("ROBOFLOW_MODEL", "ui-elements-detection/1")
DETECTION_TIMEOUT_SEC = 20

# Authentication webhooks (external collaborator)
SIGNIN_WEBHOOK_URL = os.getenv("CORD_SIGNIN_WEBHOOK", "")
SIGNUP_WEBHOOK_URL = os.getenv("CORD_SIGNUP_WEBHOOK", "")

# to store request/response text of provider calls; unset keeps traffic logging off
_traffic_dir = os.getenv("CORD_TRAFFIC_LOG_DIR")
TRAFFIC_LOG_DIR = Path(_traffic_dir) if _traffic_dir else None
