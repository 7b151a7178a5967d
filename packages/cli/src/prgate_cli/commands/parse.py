"""parse command — normalize a model reply and bot comments into one review record."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console

from prgate_cli.commands.gate import write_json
from prgate_core.comments import DEFAULT_IDENTITY
from prgate_core.errors import InputError
from prgate_core.normalize import normalize

console = Console(stderr=True)


def _read_comments_file(path: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        raise click.ClickException(f"Comments JSON is not valid JSON: {path}")


def _fetch_comments(repo: str, pr_number: int) -> list[dict]:
    from prgate_cli.auth import resolve_github_token
    from prgate_core.gh.pull_request import get_bot_comments, get_pull, get_repo

    token = resolve_github_token()
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")
    return get_bot_comments(get_pull(get_repo(repo, token=token), pr_number))


@click.command("parse")
@click.option("--iteration", required=True, type=int, help="1-based review iteration number.")
@click.option(
    "--response-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Model reply (JSON, fenced JSON, or plain text).",
)
@click.option(
    "--comments-file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Bot comments JSON as returned by the GitHub API.",
)
@click.option("--repo", default=None, help="Fetch comments from this repository (owner/name) instead of a file.")
@click.option("--pr-number", "pr_number", type=int, default=None, help="Pull request to fetch comments from.")
@click.option("--out", "out_file", default=None, help="Write the record here instead of stdout.")
@click.pass_context
def parse_cmd(
    ctx,
    iteration: int,
    response_file: str,
    comments_file: str | None,
    repo: str | None,
    pr_number: int | None,
    out_file: str | None,
):
    """Normalize one review iteration.

    Combines the model's score, verdict and findings with the comments left
    by the review bot (matched by `reviewer_identity`, default "greptile").
    """
    if comments_file:
        raw_comments = _read_comments_file(comments_file)
    elif repo and pr_number is not None:
        raw_comments = _fetch_comments(repo, pr_number)
    else:
        raise click.UsageError("Provide --comments-file, or --repo together with --pr-number.")

    config = ctx.obj["config"] if ctx.obj else {}
    identity = config.get("reviewer_identity") or DEFAULT_IDENTITY
    response_text = Path(response_file).read_text(encoding="utf-8", errors="replace")

    try:
        record = normalize(iteration, response_text, raw_comments, identity=identity)
    except InputError as e:
        raise click.ClickException(str(e))

    if record.opus.score is None:
        console.print("[yellow]No parseable score found in the model reply.[/yellow]")

    if out_file:
        write_json(out_file, record.to_dict())
    else:
        click.echo(json.dumps(record.to_dict(), indent=2))
