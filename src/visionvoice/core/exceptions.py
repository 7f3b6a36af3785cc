"""Exception hierarchy for VisionVoice."""


class VisionVoiceError(Exception):
    """Base exception for all VisionVoice errors."""


class ConfigError(VisionVoiceError):
    """Configuration loading or validation error."""


class FetchError(VisionVoiceError):
    """Description provider failed (network or service error)."""


class SpeechError(VisionVoiceError):
    """Platform text-to-speech failure."""


class PersistenceError(VisionVoiceError):
    """Preference storage could not be read or written."""
