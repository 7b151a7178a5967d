"""CLI entry point for prgate.

Commands:
  gate     — review a PR diff with the model, update the ledger, write the gate result
  parse    — normalize a saved model reply and bot comments into one review record
  history  — display the review ledger of a pull request
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from prgate_cli.commands.gate import gate_cmd
from prgate_cli.commands.history import history_cmd
from prgate_cli.commands.parse import parse_cmd

console = Console(stderr=True)


def _build_store(config: dict, state_file: str | None = None):
    """Instantiate the configured store from .prgate.yml settings.

    Store selection hierarchy:
      store: file   → JsonFileStore (requires --state-file)
      store: sqlite → SQLiteStore   (store_path or .prgate.db)
      store: gist   → GistStore     (requires gist_id and a GitHub token)
      store: noop   → NoOpStore     (dry run; nothing persisted)

    This factory lives in cli.py so neither prgate_core nor prgate_store
    know about the CLI config format.
    """
    from prgate_cli.auth import resolve_github_token

    store_type = config.get("store") or "file"

    if store_type == "noop":
        from prgate_store.noop import NoOpStore

        return NoOpStore()

    if store_type == "sqlite":
        from prgate_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path") or ".prgate.db")

    if store_type == "gist":
        gist_id = config.get("gist_id")
        token = config.get("github_token") or resolve_github_token()
        if gist_id and token:
            from prgate_store.gist import GistStore

            return GistStore(gist_id=gist_id, token=token)
        console.print("[yellow]GistStore requires gist_id and a GitHub token. Falling back to the state file.[/yellow]")
    elif store_type != "file":
        raise click.UsageError(f"Unknown store {store_type!r}. Choose file, sqlite, gist or noop.")

    if not state_file:
        raise click.UsageError("--state-file is required when using the file store.")
    from prgate_store.file import JsonFileStore

    return JsonFileStore(state_file)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prgate"),
    prog_name="prgate",
)
@click.option(
    "--config",
    "config_path",
    default=".prgate.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRGATE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """LLM score gate for pull requests in CI."""
    from prgate_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[prgate] %(levelname)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


main.add_command(gate_cmd)
main.add_command(parse_cmd)
main.add_command(history_cmd)
