from __future__ import annotations

from prgate_core.providers.base import BaseReviewer, ProviderResponse


def get_reviewer(provider: str, model: str, timeout_seconds: int, config: dict) -> BaseReviewer:
    """Instantiate the reviewer for ``provider`` using the API key found in config."""
    if provider == "anthropic":
        from prgate_core.providers.anthropic import AnthropicReviewer

        return AnthropicReviewer(api_key=config.get("anthropic_api_key"), model=model, timeout_seconds=timeout_seconds)
    if provider == "openai":
        from prgate_core.providers.openai import OpenAIReviewer

        return OpenAIReviewer(api_key=config.get("openai_api_key"), model=model, timeout_seconds=timeout_seconds)
    raise ValueError(f"Unknown model provider: {provider!r}. Choose 'anthropic' or 'openai'.")


__all__ = ["BaseReviewer", "ProviderResponse", "get_reviewer"]
