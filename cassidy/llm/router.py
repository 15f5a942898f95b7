from cassidy.config import Settings
from cassidy.llm.base import UpstreamProvider
from cassidy.llm.providers.gemini import GeminiProvider
from cassidy.llm.providers.openrouter import OpenRouterProvider

PROVIDERS = {
    "openrouter": OpenRouterProvider,
    "gemini": GeminiProvider,
}


def get_provider(settings: Settings) -> UpstreamProvider:
    """Pick the provider matching the configured upstream kind."""
    return PROVIDERS[settings.upstream](settings)
