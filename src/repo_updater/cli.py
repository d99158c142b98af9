"""Command line interface for repo-updater."""

from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .core.config_file import DEFAULT_CONFIG_FILE, load_config_file, write_sample_config
from .core.errors import ConfigError
from .core.hooks import DefaultHooks
from .core.logging import setup_logging
from .core.updater import RepoUpdater

console = Console()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error: {escape(message)}", soft_wrap=True)
    raise click.Abort()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--silent", is_flag=True, help="Do not report progress or failed commands")
@click.option(
    "--gen-conf",
    is_flag=True,
    help=f"Write a sample configuration file to {DEFAULT_CONFIG_FILE} and exit",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file with --gen-conf")
@click.option(
    "--get-paths", is_flag=True, help="Print the paths of all found repositories and exit"
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file to use instead of the default one",
)
@click.option(
    "--no-output", is_flag=True, help="Capture command output instead of printing it"
)
@click.option("--debug", is_flag=True, help="Show debug logging")
@click.option("--log-file", help="Also write debug logging to this file")
@click.version_option(__version__, prog_name="repo-updater")
def cli(
    silent: bool,
    gen_conf: bool,
    force: bool,
    get_paths: bool,
    config_file: Optional[Path],
    no_output: bool,
    debug: bool,
    log_file: Optional[str],
) -> None:
    """Update all source repositories found in the configured paths.

    Every directory below the configured paths is searched for repositories
    of the configured tools (git, mercurial, ...). Each repository found is
    updated by running its tool's commands inside it, one repository after
    another.

    Examples:

      # Create a configuration file to start from
      repo-updater --gen-conf

      # List the repositories that would be updated
      repo-updater --get-paths

      # Update everything
      repo-updater
    """
    setup_logging(debug=debug, log_file=log_file)

    if gen_conf:
        try:
            path = write_sample_config(force=force)
        except (ConfigError, OSError) as e:
            _fail(str(e))
        console.print(f"Sample configuration written to {escape(str(path))}", soft_wrap=True)
        return

    try:
        config = load_config_file(config_file)
    except (ConfigError, RuntimeError) as e:
        _fail(str(e))

    if get_paths:
        for repo_path in config.root_paths:
            click.echo(repo_path)
        return

    updater = RepoUpdater(config, hooks=DefaultHooks(silent=silent), print_output=not no_output)
    if not updater.repo_count():
        if not silent:
            console.print("[yellow]No repositories found.")
        return
    updater.run_all()


def main() -> None:
    """Entry point for the repo-updater CLI."""
    cli()


if __name__ == "__main__":
    main()
