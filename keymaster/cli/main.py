"""CLI entrypoint for keymaster."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from keymaster import dependencies as deps
from keymaster.core.logging import configure_logging

app = typer.Typer(
    name="keymaster",
    help="Access keychain secrets behind an authentication challenge.",
    add_completion=False,
)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def main(
    tokens: Optional[List[str]] = typer.Argument(
        None, help="get|set|update|delete|get-many followed by key(s) and secret"
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML config file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the log level"),
) -> None:
    """Run one keychain command after authenticating."""
    settings = deps.load_app_settings(config)
    configure_logging(level=(log_level or settings.log_level).upper(), use_json=settings.log_json)

    dispatcher = deps.get_dispatcher(settings)
    report = dispatcher.run(tokens or [])
    for line in report.lines:
        typer.echo(line)
    raise typer.Exit(code=int(report.exit_code))


if __name__ == "__main__":
    app()
