"""User-visible strings in English and Chinese."""

import locale
import logging
import os
from typing import Optional

from visionvoice.core.constants import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

MESSAGES = {
    "en": {
        "result.analyzing": "Analyzing image...",
        "result.imageDescription": "Image Description",
        "result.errorAnalyzing": "Sorry, I could not describe this image. Please try again.",
        "result.doubleTapRetake": "Double tap to take another photo",
        "result.speed": "Speed: {value}x",
        "result.paused": "Paused",
        "result.autoRead": "Auto read: {value}",
        "result.retake": "Retake requested",
    },
    "zh": {
        "result.analyzing": "正在分析图片...",
        "result.imageDescription": "图片描述",
        "result.errorAnalyzing": "抱歉，无法描述这张图片，请重试。",
        "result.doubleTapRetake": "双击重新拍照",
        "result.speed": "语速：{value}x",
        "result.paused": "已暂停",
        "result.autoRead": "自动朗读：{value}",
        "result.retake": "请重新拍照",
    },
}


def detect_language(preferred: Optional[str] = None) -> str:
    """Resolve "auto" (or None) to a supported language from the system locale."""
    if preferred and preferred != "auto":
        lang = preferred.split("-")[0].split("_")[0].lower()
        return lang if lang in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE

    system = os.environ.get("LANG") or (locale.getlocale()[0] or "")
    if system.lower().startswith("zh"):
        return "zh"
    return DEFAULT_LANGUAGE


def translate(key: str, language: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """Look up a message, falling back to English, then to the key itself."""
    table = MESSAGES.get(language) or MESSAGES[DEFAULT_LANGUAGE]
    template = table.get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key)
    if template is None:
        logger.warning(f"Missing translation for '{key}'")
        return key
    return template.format(**kwargs) if kwargs else template
