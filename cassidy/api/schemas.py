from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    # Other fields (model, temperature, ...) ride along for pass-through upstreams
    model_config = ConfigDict(extra="allow")

    messages: list[ChatMessage] = Field(min_length=1)


class VisionRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    messages: Optional[list[ChatMessage]] = None
    image: str = Field(min_length=1)
    mime_type: str = Field("image/png", alias="mimeType")
    context: Optional[str] = None


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str


class Choice(BaseModel):
    message: AssistantMessage


class OpenAIEnvelope(BaseModel):
    choices: list[Choice]


class FlatReply(BaseModel):
    reply: str


class VisionReply(BaseModel):
    vision: str


class MemoryUpdateResponse(BaseModel):
    success: bool = True
    current: dict
