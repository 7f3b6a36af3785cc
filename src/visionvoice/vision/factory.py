"""Factory for creating description providers based on config and language."""

import logging
import os

from visionvoice.core.config import AppConfig
from visionvoice.vision.base import DescriptionProvider
from visionvoice.vision.chat_provider import PROMPTS, ChatCompletionsProvider

logger = logging.getLogger(__name__)

DEFAULT_BACKENDS = {
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "model": "gpt-4.1-nano",
        "api_key_env": "OPENAI_API_KEY",
    },
    "qwen": {
        "base_url": "https://dashscope.aliyuncs.com/compatible-mode/v1",
        "model": "qwen-vl-plus",
        "api_key_env": "DASHSCOPE_API_KEY",
    },
}


def create_description_provider(config: AppConfig, language: str = "en") -> DescriptionProvider:
    """Chinese goes to Qwen, everything else to OpenAI, unless config pins one."""
    vision_cfg = config.vision
    name = vision_cfg.get("provider", "auto")
    if name == "auto":
        name = "qwen" if language == "zh" else "openai"
    if name not in DEFAULT_BACKENDS:
        raise ValueError(f"Unknown vision provider: {name}")

    backend_cfg = {**DEFAULT_BACKENDS[name], **vision_cfg.get(name, {})}
    api_key = os.environ.get(backend_cfg["api_key_env"])
    if not api_key:
        logger.warning(f"{backend_cfg['api_key_env']} is not set; descriptions will fail.")

    return ChatCompletionsProvider(
        base_url=backend_cfg["base_url"],
        model=backend_cfg["model"],
        api_key=api_key,
        prompt=PROMPTS.get(language, PROMPTS["en"]),
        timeout=vision_cfg.get("timeout", 60),
        max_completion_tokens=vision_cfg.get("max_completion_tokens", 4000),
    )
