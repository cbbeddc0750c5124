from dotenv import load_dotenv
import os

load_dotenv()

# Base & data directories
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))

# Persisted files
CREDENTIALS_FILE = os.getenv(
    "CREDENTIALS_FILE", os.path.join(DATA_DIR, "yoto_credentials.json")
)
PLAYLISTS_FILE = os.getenv("PLAYLISTS_FILE", os.path.join(DATA_DIR, "playlists.json"))

# Yoto API constants
YOTO_API_BASE = os.getenv("YOTO_API_BASE", "https://api.yotoplay.com")
YOTO_AUTH_BASE = os.getenv("YOTO_AUTH_BASE", "https://login.yotoplay.com")
YOTO_DEVICE_CODE_URL = f"{YOTO_AUTH_BASE}/oauth/device/code"
YOTO_TOKEN_URL = f"{YOTO_AUTH_BASE}/oauth/token"

# Public client used for the device-code grant (REQUIRED, no secret involved)
YOTO_CLIENT_ID = os.getenv("YOTO_CLIENT_ID", "")
YOTO_AUDIENCE = os.getenv("YOTO_AUDIENCE", "https://api.yotoplay.com")
YOTO_SCOPE = os.getenv("YOTO_SCOPE", "profile offline_access")

# Device login polling
DEVICE_POLL_DEFAULT_INTERVAL_SECONDS = int(
    os.getenv("DEVICE_POLL_DEFAULT_INTERVAL_SECONDS", "5")
)
DEVICE_SLOW_DOWN_STEP_SECONDS = int(os.getenv("DEVICE_SLOW_DOWN_STEP_SECONDS", "5"))
DEVICE_CODE_DEFAULT_EXPIRES_SECONDS = 300

# Transcoding poll (2s x 30 attempts ~= 60s ceiling)
TRANSCODE_POLL_INTERVAL_SECONDS = float(
    os.getenv("TRANSCODE_POLL_INTERVAL_SECONDS", "2")
)
TRANSCODE_MAX_ATTEMPTS = int(os.getenv("TRANSCODE_MAX_ATTEMPTS", "30"))

# HTTP timeouts
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
TRANSFER_TIMEOUT_SECONDS = float(os.getenv("TRANSFER_TIMEOUT_SECONDS", "300"))

# Card defaults
DEFAULT_COVER_URL = os.getenv(
    "DEFAULT_COVER_URL", "https://cdn.yoto.io/myo-cover/star_grapefruit.gif"
)
DEFAULT_TRACK_FORMAT = "aac"

# Progress channel capacity (events buffered for a slow consumer)
PROGRESS_QUEUE_SIZE = int(os.getenv("PROGRESS_QUEUE_SIZE", "256"))

# API
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "3001"))
