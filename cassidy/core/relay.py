from typing import Optional

from fastapi.concurrency import run_in_threadpool

from cassidy.config import Settings
from cassidy.core.normalize import (
    CHAT_FALLBACK,
    VISION_FALLBACK,
    chat_envelope,
    parse_chat_request,
    parse_vision_request,
    vision_envelope,
    vision_prompt,
)
from cassidy.errors import StorageError
from cassidy.llm.base import UpstreamProvider
from cassidy.llm.client import UpstreamClient
from cassidy.memory.models import MemoryBank
from cassidy.memory.store import MemoryStore
from cassidy.observability.logger import get_logger
from cassidy.persona.prompt_builder import build_persona_instruction

log = get_logger("relay")


class Relay:
    """Turns validated client requests into one upstream call and a client reply."""

    def __init__(
        self,
        settings: Settings,
        provider: UpstreamProvider,
        client: UpstreamClient,
        memory: MemoryStore,
    ):
        self.settings = settings
        self.provider = provider
        self.client = client
        self.memory = memory

    async def _persona_instruction(self) -> Optional[str]:
        if not self.settings.memory_enabled:
            return None
        try:
            bank = MemoryBank.from_stored(await run_in_threadpool(self.memory.load))
        except StorageError:
            # Degrade to an uninjected prompt rather than failing the chat
            log.warning("memory_unavailable_for_prompt")
            return None
        return build_persona_instruction(bank, self.settings.persona_name)

    async def chat(self, body):
        """Handle a /cassidy body. Returns a dict envelope, or str in raw mode."""
        request = parse_chat_request(body)
        instruction = await self._persona_instruction()
        payload = self.provider.build_chat_request(body, request, instruction)
        log.info("chat_forwarding", provider=self.provider.name,
                 messages=len(request.messages), memory=instruction is not None)

        envelope = self.settings.chat_envelope
        if envelope == "raw":
            return await self.client.post(self.provider, payload, raw=True)

        reply = await self.client.post(self.provider, payload)
        text = self.provider.extract_text(reply)
        if text is None:
            log.warning("chat_extraction_miss", provider=self.provider.name)
            text = CHAT_FALLBACK
        return chat_envelope(text, envelope)

    async def vision(self, body) -> dict:
        request = parse_vision_request(body)
        prompt = vision_prompt(request)
        instruction = await self._persona_instruction()
        payload = self.provider.build_vision_request(request, prompt, instruction)
        log.info("vision_forwarding", provider=self.provider.name,
                 mime_type=request.mime_type, image_chars=len(request.image))

        reply = await self.client.post(self.provider, payload)
        text = self.provider.extract_text(reply)
        if text is None:
            log.warning("vision_extraction_miss", provider=self.provider.name)
            text = VISION_FALLBACK
        return vision_envelope(text)
