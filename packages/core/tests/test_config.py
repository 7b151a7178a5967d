"""Tests for configuration loading."""

import pytest

from prgate_core.config import ENV_OVERRIDES, GateConfig, load_config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["provider"] == "anthropic"
    assert config["model"] is None
    assert config["score_threshold"] == 9.0
    assert config["input_cost_per_mtokens"] == 15
    assert config["output_cost_per_mtokens"] == 75
    assert config["reviewer_identity"] == "greptile"
    assert config["store"] == "file"


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".gate.yml"
    cfg.write_text("score_threshold: 8.0\nreviewer_identity: coderabbit\n")
    config = load_config(config_path=str(cfg))
    assert config["score_threshold"] == 8.0
    assert config["reviewer_identity"] == "coderabbit"


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".gate.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["score_threshold"] == 9.0


def test_env_overrides_config_file(tmp_path, monkeypatch):
    cfg = tmp_path / ".gate.yml"
    cfg.write_text("score_threshold: 8.0\n")
    monkeypatch.setenv("OPUS_SCORE_THRESHOLD", "7.5")
    monkeypatch.setenv("OPUS_MODEL", "anthropic/claude-sonnet-4-5")
    config = load_config(config_path=str(cfg))
    assert config["score_threshold"] == "7.5"
    assert config["model"] == "anthropic/claude-sonnet-4-5"


def test_cli_overrides_env(tmp_path, monkeypatch):
    monkeypatch.setenv("OPUS_SCORE_THRESHOLD", "7.5")
    config = load_config(config_path=str(tmp_path / "none.yml"), cli_overrides={"score_threshold": 9.5})
    assert config["score_threshold"] == 9.5


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".gate.yml"
    cfg.write_text("provider: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"provider": None})
    assert config["provider"] == "openai"


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"


class TestGateConfig:
    def test_defaults(self):
        gate = GateConfig.from_config({})
        assert gate == GateConfig()
        assert gate.model == "claude-opus-4-6"
        assert gate.timeout_seconds == 300

    def test_string_numbers_converted(self):
        gate = GateConfig.from_config({"score_threshold": "7.5", "input_cost_per_mtokens": "3"})
        assert gate.score_threshold == 7.5
        assert gate.input_cost_per_mtokens == 3.0

    def test_provider_prefix_stripped(self):
        assert GateConfig.from_config({"model": "anthropic/claude-opus-4-6"}).model == "claude-opus-4-6"

    def test_openai_default_model(self):
        assert GateConfig.from_config({"provider": "openai"}).model == "gpt-4o"

    def test_low_timeout_clamped(self, caplog):
        with caplog.at_level("WARNING", logger="prgate_core.config"):
            gate = GateConfig.from_config({"timeout_seconds": "5"})
        assert gate.timeout_seconds == 30
        assert "clamping" in caplog.text

    def test_fractional_timeout_truncated(self):
        assert GateConfig.from_config({"timeout_seconds": "90.7"}).timeout_seconds == 90

    def test_invalid_number_raises(self):
        with pytest.raises(ValueError, match="score_threshold"):
            GateConfig.from_config({"score_threshold": "high"})

    def test_non_positive_diff_limit_raises(self):
        with pytest.raises(ValueError):
            GateConfig.from_config({"max_diff_chars": 0})
