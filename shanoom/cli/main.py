"""Main CLI entry point for the shanoom command.

This module provides the Typer application. Global options (verbosity, log
directory, colors) are handled by the app callback; every subcommand builds
what it needs from the working directory, runs one command object and maps
any error to an exit code.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import typer

from ..api_client.auth import CredentialStore
from ..api_client.errors import ShanoomError
from .content_command import ContentCommand
from .domain_command import DomainCommand
from .models import ExitCode
from .output import OutputHandler
from .session import build_api, load_config, load_project
from .sync_command import SyncCommand
from .user_command import UserCommand

VERSION = "0.1.0"

app = typer.Typer(
    name="shanoom",
    help="""Keep local *.data.yaml files in sync with your shanoom content backend.

QUICK START:
  shanoom login                  # Store an access token
  shanoom watch                  # Sync now, then on every file change
  shanoom run                    # Sync once and exit
  shanoom get-contents -m        # Show remote content with timestamps""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Options shared by every subcommand."""
    verbosity: int = 0
    no_color: bool = False
    output: Optional[OutputHandler] = None


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'shanoom' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("shanoom")
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    date_format = "%Y-%m-%d %H:%M:%S"
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)
    )
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"shanoom_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format)
        )
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _execute(ctx: typer.Context, action: Callable[[OutputHandler], Optional[int]]) -> None:
    """Run a command body and exit with the matching code.

    Application errors are printed without a traceback; anything
    else is logged with its traceback and exits with GENERAL_ERROR.
    """
    state: CLIState = ctx.obj
    output = state.output

    try:
        exit_code = action(output)
    except (typer.Exit, typer.Abort):
        raise
    except ShanoomError as e:
        output.stop()
        logger.error(f"{type(e).__name__}: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except KeyboardInterrupt:
        output.stop()
        output.warning("Interrupted")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except Exception as e:
        output.stop()
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(int(exit_code or ExitCode.SUCCESS))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"shanoom version {VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Keep local data files in sync with your shanoom content backend."""
    _configure_logging(verbosity, logdir)
    ctx.obj = CLIState(
        verbosity=verbosity,
        no_color=no_color,
        output=OutputHandler(verbosity=verbosity, no_color=no_color),
    )


# ----------------------------------------------------------------------
# User
# ----------------------------------------------------------------------

@app.command()
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", "-e", prompt="Email", help="Account email"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt="Password", hide_input=True, help="Account password"
    ),
) -> None:
    """Log in and store an access token."""
    def action(output: OutputHandler) -> None:
        credentials = CredentialStore()
        api = build_api(load_config(), output, credentials)
        UserCommand(api, credentials, output).login(email, password)

    _execute(ctx, action)


@app.command()
def logout(ctx: typer.Context) -> None:
    """Log out and clear the stored token."""
    def action(output: OutputHandler) -> None:
        credentials = CredentialStore()
        api = build_api(load_config(), output, credentials)
        UserCommand(api, credentials, output).logout()

    _execute(ctx, action)


@app.command()
def whoami(ctx: typer.Context) -> None:
    """Show the logged-in user's name and email."""
    def action(output: OutputHandler) -> None:
        credentials = CredentialStore()
        api = build_api(load_config(), output, credentials)
        UserCommand(api, credentials, output).whoami()

    _execute(ctx, action)


@app.command()
def profile(ctx: typer.Context) -> None:
    """Show the logged-in user's profile."""
    def action(output: OutputHandler) -> None:
        credentials = CredentialStore()
        api = build_api(load_config(), output, credentials)
        UserCommand(api, credentials, output).profile()

    _execute(ctx, action)


# ----------------------------------------------------------------------
# Sync
# ----------------------------------------------------------------------

@app.command()
def watch(
    ctx: typer.Context,
    pull: bool = typer.Option(
        False,
        "--pull",
        help="Overwrite local data files from the backend before syncing",
    ),
    ephemeral: bool = typer.Option(
        False,
        "--ephemeral",
        help="Remove all local data files when the watcher stops",
    ),
) -> None:
    """Sync all data files, then keep syncing on every change.

    Type 'exit' or 'quit', or press Ctrl+C, to stop.
    """
    def action(output: OutputHandler) -> ExitCode:
        project = load_project()
        api = build_api(project.config, output)
        return SyncCommand(project, api, output).watch(pull=pull, ephemeral=ephemeral)

    _execute(ctx, action)


@app.command()
def run(ctx: typer.Context) -> None:
    """Sync all data files once, pulling remote content if counts differ."""
    def action(output: OutputHandler) -> ExitCode:
        project = load_project()
        api = build_api(project.config, output)
        return SyncCommand(project, api, output).run()

    _execute(ctx, action)


# ----------------------------------------------------------------------
# Content
# ----------------------------------------------------------------------

@app.command()
def raw(ctx: typer.Context) -> None:
    """Print the parsed data of every local data file."""
    def action(output: OutputHandler) -> None:
        project = load_project()
        ContentCommand(project, build_api(project.config, output), output).raw()

    _execute(ctx, action)


def get_content(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Content name"),
    meta: bool = typer.Option(False, "--meta", "-m", help="Show created/updated timestamps"),
) -> None:
    """Show one content item from the project's domain."""
    def action(output: OutputHandler) -> None:
        project = load_project()
        ContentCommand(project, build_api(project.config, output), output).get_content(name, meta)

    _execute(ctx, action)


def get_contents(
    ctx: typer.Context,
    meta: bool = typer.Option(False, "--meta", "-m", help="Show created/updated timestamps"),
) -> None:
    """Show every content item in the project's domain."""
    def action(output: OutputHandler) -> None:
        project = load_project()
        ContentCommand(project, build_api(project.config, output), output).get_contents(meta)

    _execute(ctx, action)


def get_all_data(ctx: typer.Context) -> None:
    """Overwrite local data files with the domain's content."""
    def action(output: OutputHandler) -> None:
        project = load_project()
        ContentCommand(project, build_api(project.config, output), output).get_all_data()

    _execute(ctx, action)


app.command("get-content")(get_content)
app.command("get-contents")(get_contents)
app.command("get-all-data")(get_all_data)
app.command("getContent", hidden=True)(get_content)
app.command("getContents", hidden=True)(get_contents)
app.command("getAllData", hidden=True)(get_all_data)


@app.command("remove-data")
def remove_data(ctx: typer.Context) -> None:
    """Delete every local data file in the project."""
    def action(output: OutputHandler) -> None:
        project = load_project()
        ContentCommand(project, build_api(project.config, output), output).remove_data()

    _execute(ctx, action)


# ----------------------------------------------------------------------
# Domains
# ----------------------------------------------------------------------

@app.command()
def domains(ctx: typer.Context) -> None:
    """List your domains."""
    def action(output: OutputHandler) -> None:
        DomainCommand(build_api(load_config(), output), output).list_domains()

    _execute(ctx, action)


@app.command()
def domain(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Domain name"),
) -> None:
    """Show one domain."""
    def action(output: OutputHandler) -> None:
        DomainCommand(build_api(load_config(), output), output).show(name)

    _execute(ctx, action)


@app.command("update-domain")
def update_domain(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Domain name"),
    description: str = typer.Option(..., "--description", "-d", help="New description"),
) -> None:
    """Change a domain's description."""
    def action(output: OutputHandler) -> None:
        DomainCommand(build_api(load_config(), output), output).update(name, description)

    _execute(ctx, action)


@app.command("delete-domain")
def delete_domain(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Domain name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a domain and all of its content."""
    if not yes and not typer.confirm(f'Delete domain "{name}" and all of its content?', default=False):
        ctx.obj.output.info("Aborted.")
        raise typer.Exit(ExitCode.SUCCESS)

    def action(output: OutputHandler) -> None:
        DomainCommand(build_api(load_config(), output), output).delete(name)

    _execute(ctx, action)


@app.command("delete-domains")
def delete_domains(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete all of your domains."""
    if not yes and not typer.confirm("Delete ALL domains and their content?", default=False):
        ctx.obj.output.info("Aborted.")
        raise typer.Exit(ExitCode.SUCCESS)

    def action(output: OutputHandler) -> None:
        DomainCommand(build_api(load_config(), output), output).delete_all()

    _execute(ctx, action)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m shanoom.cli.main
if __name__ == "__main__":
    main()
