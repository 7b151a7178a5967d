from __future__ import annotations

from prgate_core.providers.base import BaseReviewer, ProviderResponse


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-opus-4-6"
    # temperature=0 so repeated runs over the same diff score consistently.
    TEMPERATURE = 0.0

    def __init__(self, api_key: str, model: str | None = None, timeout_seconds: int = 300):
        super().__init__(model=model, timeout_seconds=timeout_seconds)
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. " "Install it with: pip install anthropic"
            )
        # Retries are handled by BaseReviewer inside the gate's deadline.
        self.client = Anthropic(api_key=api_key, timeout=float(timeout_seconds), max_retries=0)

    def _is_timeout(self, error: Exception) -> bool:
        from anthropic import APITimeoutError

        return isinstance(error, APITimeoutError) or super()._is_timeout(error)

    def _call_api(self, system_prompt: str, user_prompt: str) -> ProviderResponse:
        # Imported inside the method to keep the SDK import next to its use;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        usage = getattr(response, "usage", None)
        return ProviderResponse(
            text="\n".join(text_blocks),
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
        )
