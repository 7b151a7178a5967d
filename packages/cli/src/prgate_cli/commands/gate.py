"""gate command — review a pull request diff and write the gate result."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from prgate_core.config import GateConfig
from prgate_core.errors import ProviderError, UpstreamTimeout
from prgate_core.ledger import LedgerContext, default_state_id
from prgate_core.pipeline import GateResult, run_pipeline, utc_now_iso
from prgate_core.providers import get_reviewer
from prgate_core.utils.diff import truncate_diff
from prgate_store.base import StoreError

console = Console(stderr=True)

_API_KEY_ENV = {"anthropic": "ANTHROPIC_API_KEY", "openai": "OPENAI_API_KEY"}


def write_json(path: str, data: dict) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _print_result(result: GateResult) -> None:
    if result.timed_out:
        console.print(f"[yellow]{result.warning}[/yellow]")
        return
    score = "none" if result.score is None else f"{result.score}"
    color = "green" if result.passed else "red"
    console.print(
        f"[{color}]{result.status.upper()}[/{color}]  score [bold]{score}[/bold] / threshold {result.threshold}  "
        f"verdict {result.verdict}  ({len(result.findings)} finding(s), ${result.cost_usd:.6f})"
    )
    for finding in result.findings:
        location = finding.file or ""
        if finding.line is not None:
            location += f":{finding.line}"
        console.print(escape(f"  [{finding.severity}] {location} {finding.issue}".rstrip()))


@click.command("gate")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr-number", "pr_number", required=True, type=click.IntRange(min=0), help="Pull request number.")
@click.option(
    "--diff-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the unified diff of the pull request.",
)
@click.option("--state-file", default=None, help="Path to the JSON state ledger (file store).")
@click.option("--result-file", required=True, help="Where to write the gate result JSON.")
@click.option(
    "--provider",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="Model provider. Overrides config file.",
)
@click.option("--model", default=None, help="Model name. Overrides OPUS_MODEL and the config file.")
@click.option("--threshold", type=float, default=None, help="Passing score. Overrides OPUS_SCORE_THRESHOLD.")
@click.pass_context
def gate_cmd(
    ctx,
    repo: str,
    pr_number: int,
    diff_file: str,
    state_file: str | None,
    result_file: str,
    provider: str | None,
    model: str | None,
    threshold: float | None,
):
    """Score a pull request diff and write a machine-checkable result.

    Exits 0 whenever a result file is written; branch on its `passed` field.
    A provider timeout fails open (`passed: true`, `status: warning`).

    \b
    Environment:
      ANTHROPIC_API_KEY / OPENAI_API_KEY   Required for the chosen provider
      OPUS_MODEL, OPUS_TIMEOUT_SECONDS, OPUS_SCORE_THRESHOLD,
      OPUS_INPUT_COST_PER_MTOKENS, OPUS_OUTPUT_COST_PER_MTOKENS, MAX_DIFF_CHARS
    """
    from prgate_cli.cli import _build_store

    if "/" not in repo:
        raise click.UsageError("--repo must be owner/repo")

    config = {**ctx.obj["config"]}
    for key, value in {"provider": provider, "model": model, "score_threshold": threshold}.items():
        if value is not None:
            config[key] = value

    try:
        gate = GateConfig.from_config(config)
    except ValueError as e:
        raise click.UsageError(str(e))

    key_name = f"{gate.provider}_api_key"
    if not config.get(key_name):
        raise click.UsageError(f"{_API_KEY_ENV.get(gate.provider, key_name.upper())} environment variable is not set.")

    diff_text, truncated = truncate_diff(Path(diff_file).read_bytes(), gate.max_diff_chars)
    if truncated:
        # GitHub Actions workflow annotation.
        click.echo(f"::warning::Diff truncated to {gate.max_diff_chars} bytes")

    store = _build_store(config, state_file)
    try:
        reviewer = get_reviewer(gate.provider, gate.model, gate.timeout_seconds, config)
        console.print(f"Requesting review of {repo}#{pr_number} from {gate.model}...")
        try:
            response = reviewer.review(diff_text, gate.score_threshold)
        except UpstreamTimeout as e:
            console.print(f"[yellow]{e}[/yellow]")
            response = None
        except ProviderError as e:
            raise click.ClickException(str(e))

        context = LedgerContext(
            state_id=default_state_id(pr_number),
            pr_number=pr_number,
            model=gate.model,
            timestamp=utc_now_iso(),
            repo=repo,
            provider=gate.provider,
        )
        try:
            run = run_pipeline(response, store, gate, context)
        except StoreError as e:
            raise click.ClickException(f"Review state not updated: {e}")
    finally:
        store.close()

    write_json(result_file, run.result.to_dict())
    _print_result(run.result)
