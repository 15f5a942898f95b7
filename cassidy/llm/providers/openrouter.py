"""
OpenRouter upstream: speaks the OpenAI chat-completions schema, so chat bodies
are forwarded as the client sent them. The API key travels as a bearer token.
"""
import copy
from typing import Optional

from cassidy.api.schemas import ChatRequest, VisionRequest
from cassidy.config import Settings
from cassidy.llm.base import UpstreamProvider


class OpenRouterProvider(UpstreamProvider):
    name = "openrouter"

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_chat_request(
        self, body: dict, request: ChatRequest, instruction: Optional[str] = None
    ) -> dict:
        if not instruction:
            return body
        # Memory goes in through the system channel; the client's body is not mutated
        payload = copy.deepcopy(body)
        payload["messages"] = [{"role": "system", "content": instruction}] + payload["messages"]
        return payload

    def build_vision_request(
        self, request: VisionRequest, prompt: str, instruction: Optional[str] = None
    ) -> dict:
        messages = []
        if instruction:
            messages.append({"role": "system", "content": instruction})
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{request.mime_type};base64,{request.image}"},
                },
            ],
        })
        return {
            "model": self.settings.openrouter_vision_model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "top_p": self.settings.top_p,
            "max_tokens": self.settings.max_output_tokens,
        }

    def endpoint(self) -> str:
        return self.settings.openrouter_url

    def headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.openrouter_api_key or ''}",
        }

    def extract_text(self, reply) -> Optional[str]:
        try:
            content = reply["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None
        if isinstance(content, str) and content:
            return content
        return None
