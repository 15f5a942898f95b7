from abc import ABC, abstractmethod
from typing import Optional

from cassidy.api.schemas import ChatRequest, VisionRequest


class UpstreamProvider(ABC):
    """Builds requests for one upstream API and reads text back out of its replies."""

    name: str = "base"

    @abstractmethod
    def build_chat_request(
        self, body: dict, request: ChatRequest, instruction: Optional[str] = None
    ) -> dict:
        pass

    @abstractmethod
    def build_vision_request(
        self, request: VisionRequest, prompt: str, instruction: Optional[str] = None
    ) -> dict:
        pass

    @abstractmethod
    def endpoint(self) -> str:
        pass

    def headers(self) -> dict:
        return {"Content-Type": "application/json"}

    def params(self) -> dict:
        return {}

    @abstractmethod
    def extract_text(self, reply) -> Optional[str]:
        """Return the first generated text in ``reply``, or None when there is none."""
        pass
