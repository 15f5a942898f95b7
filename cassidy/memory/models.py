from pydantic import BaseModel, ConfigDict

DEFAULT_CORE_MEMORIES = "I am Cassidy, a cheerful companion who lives in this game world."
DEFAULT_USER_FACTS = "Nothing is known about the player yet."
DEFAULT_CURRENT_CONTEXT = "The player has just arrived."


class MemoryBank(BaseModel):
    """Persona memory injected into prompts. Extra string fields are kept as-is."""

    model_config = ConfigDict(extra="allow")

    core_memories: str = ""
    user_facts: str = ""
    current_context: str = ""

    @classmethod
    def defaults(cls) -> "MemoryBank":
        return cls(
            core_memories=DEFAULT_CORE_MEMORIES,
            user_facts=DEFAULT_USER_FACTS,
            current_context=DEFAULT_CURRENT_CONTEXT,
        )

    @classmethod
    def from_stored(cls, data: dict) -> "MemoryBank":
        # Stored banks are not schema-checked; coerce values to text for prompting
        return cls(**{str(k): v if isinstance(v, str) else str(v) for k, v in data.items()})

    def extra_fields(self) -> dict:
        return dict(self.model_extra or {})
