"""Constants for VisionVoice."""

from pathlib import Path

# core/ -> visionvoice/ -> src/ -> project root
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Default paths
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"

# Supported languages
SUPPORTED_LANGUAGES = ("en", "zh")
DEFAULT_LANGUAGE = "en"

# Reading rate (1.0 = the platform's normal speaking rate)
MIN_RATE = 0.5
DEFAULT_MAX_RATE = 10.0
DEFAULT_RATE = 0.8

# Drag-to-adjust speed; higher sensitivity = less sensitive
RATE_SENSITIVITY = 150.0
RATE_THROTTLE_SECONDS = 0.1
RATE_DEADBAND = 0.1

# Two taps closer than this are a double tap
DOUBLE_TAP_WINDOW = 0.3

# Persisted preference keys
RATE_KEY = "narration.rate"
AUTO_READ_KEY = "narration.autoRead"
DEFAULT_AUTO_READ = True

# pyttsx3 speaks in words per minute; rate 1.0 maps to this
PYTTSX3_BASE_WPM = 175

# Process names of screen readers we know how to detect
SCREEN_READER_PROCESSES = (
    "orca",
    "nvda.exe",
    "narrator.exe",
    "jfw.exe",
    "voiceover",
)
