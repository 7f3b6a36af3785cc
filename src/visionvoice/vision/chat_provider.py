"""Vision descriptions over OpenAI-compatible chat-completions endpoints."""

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import requests
from pydantic import ValidationError

from visionvoice.core.exceptions import FetchError
from visionvoice.vision.base import DescriptionProvider
from visionvoice.vision.models import ChatCompletionResponse

logger = logging.getLogger(__name__)

PROMPTS = {
    "en": (
        "Please describe this image in detail for a blind person. Focus on the "
        "main subjects, their positions, colors, and any important context. "
        "Keep the description clear and concise, 200 words or less, avoid "
        "bullet points. Please respond in English."
    ),
    "zh": (
        "请详细描述这张图片，描述应适合视障人士理解。只描述主要内容、位置、颜色和任何"
        "重要的环境信息、文字信息，只描述事实，不要扩展。请保持描述清晰简洁，200字以内，"
        "不要使用项目符号。"
    ),
}


def encode_image(image_ref: str) -> str:
    """Read an image file and return it as a base64 data URL."""
    path = Path(image_ref)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FetchError(f"Cannot read image {image_ref}: {e}") from e
    mime = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


class ChatCompletionsProvider(DescriptionProvider):
    """Posts the image and a prompt, returns the model's reply."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: Optional[str] = None,
        prompt: str = PROMPTS["en"],
        timeout: int = 60,
        max_completion_tokens: int = 4000,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.prompt = prompt
        self.timeout = timeout
        self.max_completion_tokens = max_completion_tokens

    async def describe(self, image_ref: str) -> str:
        return await asyncio.to_thread(self._describe_sync, image_ref)

    def _describe_sync(self, image_ref: str) -> str:
        if not self.api_key:
            raise FetchError(f"No API key configured for {self.base_url}")

        payload = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.prompt},
                        {"type": "image_url", "image_url": {"url": encode_image(image_ref)}},
                    ],
                }
            ],
            "max_completion_tokens": self.max_completion_tokens,
        }

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            parsed = ChatCompletionResponse.model_validate(response.json())

        except requests.exceptions.ConnectionError as e:
            logger.error(f"Cannot connect to {self.base_url}")
            raise FetchError(f"Connection failed: {e}") from e

        except requests.exceptions.Timeout as e:
            logger.error(f"Vision request timed out after {self.timeout}s")
            raise FetchError(f"Request timed out after {self.timeout}s") from e

        except requests.exceptions.HTTPError as e:
            logger.error(f"Vision service returned an error: {e}")
            raise FetchError(f"Service error: {e}") from e

        except (ValueError, ValidationError) as e:
            logger.error(f"Unexpected vision response: {e}")
            raise FetchError(f"Malformed response: {e}") from e

        except requests.exceptions.RequestException as e:
            logger.error(f"Vision request failed: {e}")
            raise FetchError(f"Request failed: {e}") from e

        text = parsed.first_text()
        if not text:
            raise FetchError("Vision service returned an empty description")
        logger.info(f"Received description ({len(text)} chars) from {self.model}")
        return text
