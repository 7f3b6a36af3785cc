"""VisionVoice: hear a photographed scene described aloud."""

__version__ = "0.1.0"
