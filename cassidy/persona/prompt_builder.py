from cassidy.memory.models import MemoryBank

BEHAVIOR_INSTRUCTIONS = (
    "Stay in character at all times. Keep replies short and conversational, "
    "suitable for a chat bubble in a game. Never mention that you are an AI model "
    "or that you have a memory bank."
)


def build_persona_instruction(bank: MemoryBank, persona_name: str = "Cassidy") -> str:
    """Render the memory bank into the persona/system instruction for the upstream."""
    lines = [f"You are {persona_name}, a character inside a Roblox game."]

    lines.append("\n## CORE MEMORIES")
    lines.append(bank.core_memories or "None.")

    lines.append("\n## WHAT YOU KNOW ABOUT THE PLAYER")
    lines.append(bank.user_facts or "None.")

    lines.append("\n## CURRENT CONTEXT")
    lines.append(bank.current_context or "None.")

    extras = bank.extra_fields()
    if extras:
        lines.append("\n## OTHER NOTES")
        for key, value in extras.items():
            lines.append(f"- {key}: {value}")

    lines.append("\n## HOW TO BEHAVE")
    lines.append(BEHAVIOR_INSTRUCTIONS)
    return "\n".join(lines)
