"""Pydantic models for the chat-completions vision API."""

from typing import List, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatCompletionResponse(BaseModel):
    """Subset of the OpenAI-compatible response we rely on."""
    model: Optional[str] = None
    choices: List[ChatChoice] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        if not self.choices:
            return None
        content = self.choices[0].message.content
        return content.strip() if content else None
