"""pydantic-ai adapters for the generation service."""

from taming_llm.client import PydanticAiGenerationClient
from taming_llm.provider_factory import ProviderFactoryError, create_model
from taming_llm.providers import ProviderCapabilities, detect_provider

__all__ = [
    "ProviderCapabilities",
    "ProviderFactoryError",
    "PydanticAiGenerationClient",
    "create_model",
    "detect_provider",
]
