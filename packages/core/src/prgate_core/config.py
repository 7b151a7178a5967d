import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "provider": "anthropic",
    "model": None,  # None = the provider's default model
    "timeout_seconds": 300,
    "score_threshold": 9.0,
    "input_cost_per_mtokens": 15,
    "output_cost_per_mtokens": 75,
    "max_diff_chars": 120000,
    "reviewer_identity": "greptile",  # substring matched against comment author/body
    "store": "file",  # file | sqlite | gist | noop
    "store_path": None,
    "gist_id": None,
}

# Environment variables read by existing CI workflows; they sit between the
# config file and CLI flags in precedence.
ENV_OVERRIDES = {
    "OPUS_MODEL": "model",
    "OPUS_TIMEOUT_SECONDS": "timeout_seconds",
    "OPUS_SCORE_THRESHOLD": "score_threshold",
    "OPUS_INPUT_COST_PER_MTOKENS": "input_cost_per_mtokens",
    "OPUS_OUTPUT_COST_PER_MTOKENS": "output_cost_per_mtokens",
    "MAX_DIFF_CHARS": "max_diff_chars",
}

MIN_TIMEOUT_SECONDS = 30

DEFAULT_MODELS = {"anthropic": "claude-opus-4-6", "openai": "gpt-4o"}


def load_config(config_path: str = ".prgate.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prgate.yml in the current directory
      3. Environment variables (OPUS_MODEL, OPUS_SCORE_THRESHOLD, ...)
      4. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def _as_float(config: dict, key: str) -> float:
    try:
        return float(config[key])
    except (TypeError, ValueError):
        raise ValueError(f"Config value {key!r} must be a number, got {config[key]!r}")


@dataclass(frozen=True)
class GateConfig:
    """Settings passed explicitly into the gate components."""

    provider: str = DEFAULT_CONFIG["provider"]
    model: str = DEFAULT_MODELS["anthropic"]
    timeout_seconds: int = DEFAULT_CONFIG["timeout_seconds"]
    score_threshold: float = DEFAULT_CONFIG["score_threshold"]
    input_cost_per_mtokens: float = DEFAULT_CONFIG["input_cost_per_mtokens"]
    output_cost_per_mtokens: float = DEFAULT_CONFIG["output_cost_per_mtokens"]
    max_diff_chars: int = DEFAULT_CONFIG["max_diff_chars"]
    reviewer_identity: str = DEFAULT_CONFIG["reviewer_identity"]

    @classmethod
    def from_config(cls, config: dict) -> "GateConfig":
        """Validate a merged config dict.

        The model may be given with a provider prefix ("anthropic/claude-opus-4-6").
        Timeouts below MIN_TIMEOUT_SECONDS are raised to it with a warning;
        fractional seconds are dropped.
        """
        merged = {**DEFAULT_CONFIG, **{k: v for k, v in config.items() if v is not None}}

        provider = str(merged["provider"])
        model = str(merged.get("model") or DEFAULT_MODELS.get(provider, ""))
        prefix = f"{provider}/"
        if model.startswith(prefix):
            model = model[len(prefix) :]

        timeout = int(_as_float(merged, "timeout_seconds"))
        if timeout < MIN_TIMEOUT_SECONDS:
            logger.warning("timeout_seconds=%s is too low; clamping to %d", timeout, MIN_TIMEOUT_SECONDS)
            timeout = MIN_TIMEOUT_SECONDS

        max_diff = int(_as_float(merged, "max_diff_chars"))
        if max_diff < 1:
            raise ValueError(f"Config value 'max_diff_chars' must be positive, got {max_diff}")

        return cls(
            provider=provider,
            model=model,
            timeout_seconds=timeout,
            score_threshold=_as_float(merged, "score_threshold"),
            input_cost_per_mtokens=_as_float(merged, "input_cost_per_mtokens"),
            output_cost_per_mtokens=_as_float(merged, "output_cost_per_mtokens"),
            max_diff_chars=max_diff,
            reviewer_identity=str(merged["reviewer_identity"]),
        )
