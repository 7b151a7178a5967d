"""history command — display the review ledger of a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prgate_core.ledger import default_state_id
from prgate_core.pipeline import load_prior_state
from prgate_store.base import StoreError

console = Console()

_STATUS_STYLE = {
    "ready": "green",
    "warning": "yellow",
    "failed": "red",
    "pending": "dim",
}


@click.command("history")
@click.option("--pr-number", "pr_number", required=True, type=int, help="Pull request number.")
@click.option("--state-file", default=None, help="Path to the JSON state ledger (file store).")
@click.pass_context
def history_cmd(ctx, pr_number: int, state_file: str | None):
    """Show every gate iteration and its cost for a pull request."""
    from prgate_cli.cli import _build_store

    store = _build_store(ctx.obj["config"], state_file)
    try:
        state = load_prior_state(store, default_state_id(pr_number))
    except StoreError as e:
        raise click.ClickException(str(e))
    finally:
        store.close()

    if state is None:
        console.print("[yellow]No review state found.[/yellow]")
        return

    style = _STATUS_STYLE.get(state.status, "white")
    console.print(f"\n[bold]{escape(state.task)}[/bold]  [{style}]{state.status}[/{style}]")
    console.print(f"  Started:    {state.started_at}")
    console.print(f"  Updated:    {state.updated_at}")
    console.print(f"  Iterations: {state.iteration}")
    console.print(f"  Total cost: ${state.cost.total:.6f}")

    table = Table(title=f"Review History — PR #{pr_number}", show_header=True, header_style="bold cyan")
    table.add_column("#", style="bold", width=4)
    table.add_column("Score", justify="right", width=7)
    table.add_column("Verdict", width=16)
    table.add_column("Findings", justify="right", width=9)
    table.add_column("Status", width=8)
    table.add_column("Tokens in/out", justify="right", width=14)
    table.add_column("Cost (USD)", justify="right", width=11)
    table.add_column("Reviewed At", width=20)

    # Audit entries are appended in step with reviews; older ledgers may lack them.
    audit = state.cost.reviews
    for index, review in enumerate(state.reviews):
        if not isinstance(review, dict):
            continue
        opus = review.get("opus") if isinstance(review.get("opus"), dict) else {}
        entry = audit[index] if index < len(audit) and isinstance(audit[index], dict) else {}
        score = opus.get("score")
        status = entry.get("status", "")
        row_style = _STATUS_STYLE.get(status, "white")
        table.add_row(
            str(review.get("iteration", index + 1)),
            "—" if score is None else str(score),
            escape(str(opus.get("verdict", ""))),
            str(len(opus.get("findings") or [])),
            f"[{row_style}]{status}[/{row_style}]" if status else "",
            f"{entry.get('inputTokens', 0)}/{entry.get('outputTokens', 0)}" if entry else "",
            f"{entry.get('costUsd', 0):.6f}" if entry else "",
            str(entry.get("reviewedAt", ""))[:19].replace("T", " "),
        )

    console.print(table)
