"""
Gemini upstream (generateContent). Conversations are flattened into a single
user turn and the API key goes in the ``key`` query parameter.
"""
from typing import Optional

from cassidy.api.schemas import ChatRequest, VisionRequest
from cassidy.config import Settings
from cassidy.core.normalize import PROMPT_SEPARATOR, flatten_messages
from cassidy.llm.base import UpstreamProvider


class GeminiProvider(UpstreamProvider):
    name = "gemini"

    def __init__(self, settings: Settings):
        self.settings = settings

    def _generation_config(self) -> dict:
        return {
            "temperature": self.settings.temperature,
            "topP": self.settings.top_p,
            "maxOutputTokens": self.settings.max_output_tokens,
        }

    def build_chat_request(
        self, body: dict, request: ChatRequest, instruction: Optional[str] = None
    ) -> dict:
        prompt = flatten_messages(request.messages)
        if instruction:
            prompt = instruction + PROMPT_SEPARATOR + prompt
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": self._generation_config(),
        }

    def build_vision_request(
        self, request: VisionRequest, prompt: str, instruction: Optional[str] = None
    ) -> dict:
        if instruction:
            prompt = instruction + PROMPT_SEPARATOR + prompt
        return {
            "contents": [{
                "role": "user",
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": request.mime_type, "data": request.image}},
                ],
            }],
            "generationConfig": self._generation_config(),
        }

    def endpoint(self) -> str:
        base = self.settings.gemini_base_url.rstrip("/")
        return f"{base}/models/{self.settings.gemini_model}:generateContent"

    def params(self) -> dict:
        return {"key": self.settings.gemini_api_key or ""}

    def extract_text(self, reply) -> Optional[str]:
        try:
            text = reply["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        if isinstance(text, str) and text:
            return text
        return None
