from __future__ import annotations

try:
    from openai import APITimeoutError as _APITimeoutError
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]
    _APITimeoutError = None  # type: ignore[assignment,misc]

from prgate_core.providers.base import BaseReviewer, ProviderResponse


class OpenAIReviewer(BaseReviewer):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.0

    def __init__(self, api_key: str, model: str | None = None, timeout_seconds: int = 300):
        super().__init__(model=model, timeout_seconds=timeout_seconds)
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install 'prgate[openai]'"
            )
        self.client = _OpenAI(api_key=api_key, timeout=float(timeout_seconds), max_retries=0)

    def _is_timeout(self, error: Exception) -> bool:
        if _APITimeoutError is not None and isinstance(error, _APITimeoutError):
            return True
        return super()._is_timeout(error)

    def _call_api(self, system_prompt: str, user_prompt: str) -> ProviderResponse:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        usage = getattr(response, "usage", None)
        return ProviderResponse(
            text=response.choices[0].message.content or "",
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
