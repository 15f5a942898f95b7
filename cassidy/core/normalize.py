"""Request validation and reply envelopes shared by every upstream."""

from typing import Optional

from pydantic import ValidationError

from cassidy.api.schemas import (
    AssistantMessage,
    ChatMessage,
    ChatRequest,
    Choice,
    FlatReply,
    OpenAIEnvelope,
    VisionReply,
    VisionRequest,
)
from cassidy.errors import InvalidRequest, MissingImage
from cassidy.observability.logger import get_logger

log = get_logger("normalize")

PROMPT_SEPARATOR = "\n\n"

CHAT_FALLBACK = "Hmm, I lost my train of thought. Could you say that again?"
VISION_FALLBACK = "I couldn't quite make out that image."
DEFAULT_VISION_PROMPT = "Describe what you see in this image."


def parse_chat_request(body) -> ChatRequest:
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object.")
    messages = body.get("messages")
    if not isinstance(messages, list) or not messages:
        raise InvalidRequest("'messages' must be a non-empty array.")
    try:
        return ChatRequest.model_validate(body)
    except ValidationError as e:
        log.info("chat_request_rejected", errors=e.error_count())
        raise InvalidRequest("Each message needs a valid 'role' and string 'content'.") from e


def parse_vision_request(body) -> VisionRequest:
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object.")
    image = body.get("image")
    if not isinstance(image, str) or not image:
        raise MissingImage()
    try:
        return VisionRequest.model_validate(body)
    except ValidationError as e:
        log.info("vision_request_rejected", errors=e.error_count())
        raise InvalidRequest() from e


def flatten_messages(messages: list[ChatMessage]) -> str:
    """Collapse a conversation into one prompt, dropping roles.

    Each message's content is followed by a blank line, so ``["a", "b"]``
    becomes ``"a\\n\\nb\\n\\n"``.
    """
    return "".join(m.content + PROMPT_SEPARATOR for m in messages)


def last_message_text(messages: Optional[list[ChatMessage]]) -> Optional[str]:
    if not messages:
        return None
    return messages[-1].content


def vision_prompt(request: VisionRequest) -> str:
    if request.context:
        return request.context
    return last_message_text(request.messages) or DEFAULT_VISION_PROMPT


def chat_envelope(text: str, kind: str) -> dict:
    if kind == "flat":
        return FlatReply(reply=text).model_dump()
    return OpenAIEnvelope(
        choices=[Choice(message=AssistantMessage(content=text))]
    ).model_dump()


def vision_envelope(text: str) -> dict:
    return VisionReply(vision=text).model_dump()
