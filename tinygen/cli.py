"""Command-line interface for tinygen.

This module defines the CLI commands using Click framework.
Configuration is read from tinygen.yaml in the current directory.

Commands:
- build: Build the site into the destination directory.
- serve: Run the development server with on-demand rebuilds and live reload.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__
from .config import ConfigError, load_config


def _load_config(project_root: Path):
    try:
        return load_config(project_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)


@click.group()
@click.version_option(version=__version__, prog_name="tinygen")
def cli():
    """tinygen static site generator."""


@cli.command()
def build():
    """Build the site into the destination directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    except BuildError as exc:
        # Display user-friendly error message
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(
            click.style(f"  File: {_display_path(exc.source_path, project_root)}", fg="yellow"),
            err=True,
        )
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.pages)} pages and copied {result.copied} files"
        f" into {result.output_dir}"
    )


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides tinygen.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides tinygen.yaml ws_port)",
)
def serve(port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .build import Generator
    from .server import DevServer

    generator = Generator(_load_config(project_root))
    server = DevServer(generator, http_port=port, ws_port=ws_port)
    server.start()


def main():
    """Entry point for the CLI application."""
    cli()
