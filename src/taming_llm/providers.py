"""Provider detection from endpoint base URLs."""

from __future__ import annotations

import ipaddress
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field


class ProviderCapabilities(BaseModel):
    """Routing-relevant facts about a provider.

    Attributes:
        name: Human-readable provider name.
        is_openrouter: Whether requests go through OpenRouter.
        is_local: Whether the endpoint is a local or private host.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Human-readable provider name")
    is_openrouter: bool = Field(description="Whether the provider is OpenRouter")
    is_local: bool = Field(False, description="Whether the host is local/private")


OPENROUTER_CAPABILITIES = ProviderCapabilities(name="OpenRouter", is_openrouter=True)
OPENAI_CAPABILITIES = ProviderCapabilities(name="OpenAI", is_openrouter=False)
LOCAL_CAPABILITIES = ProviderCapabilities(
    name="Local", is_openrouter=False, is_local=True
)
GENERIC_CAPABILITIES = ProviderCapabilities(
    name="Generic OpenAI-compatible", is_openrouter=False
)


def normalize_base_url(base_url: str) -> str:
    """Lower-case the URL, add a scheme if missing and drop a trailing slash.

    Args:
        base_url: The base URL to normalize.

    Returns:
        Normalized base URL string.
    """
    lowered = base_url.lower()
    if not lowered.startswith(("http://", "https://")):
        lowered = "https://" + lowered
    parsed = urlparse(lowered)
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}".rstrip("/")


def _is_private_host(hostname: str) -> bool:
    if hostname in ("localhost", "0.0.0.0", "::1"):
        return True
    if hostname.endswith((".local", ".localhost")):
        return True
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback


def detect_provider(base_url: str) -> ProviderCapabilities:
    """Detect the provider behind a base URL.

    Args:
        base_url: The API base URL.

    Returns:
        ProviderCapabilities for the detected provider.
    """
    normalized = normalize_base_url(base_url)
    if "openrouter.ai" in normalized:
        return OPENROUTER_CAPABILITIES
    if "api.openai.com" in normalized:
        return OPENAI_CAPABILITIES
    if _is_private_host(urlparse(normalized).hostname or ""):
        return LOCAL_CAPABILITIES
    return GENERIC_CAPABILITIES
