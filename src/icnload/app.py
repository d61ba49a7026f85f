"""Typer application and CLI entry point for icnload.

The CLI is the build-step host: it resolves the step configuration from
flags, environment and stored profiles, runs the
:class:`~icnload.workflow.SessionWorkflow`, and turns the outcome into a
process exit code a CI server understands.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from icnload import __version__
from icnload.commands.check import check_command
from icnload.commands.profile import profile_app
from icnload.commands.run import run_command
from icnload.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="icnload",
    help="Reload an IBM Content Navigator plug-in and save its configuration.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("run")(run_command)
app.command("check")(check_command)
app.add_typer(profile_app, name="profile", help="Manage stored step configurations.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"icnload {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Stored step configuration to use."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress the transcript; errors are still shown."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show each request and status."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~icnload.output.OutputManager` and stores
    the shared ``profile`` option in ``ctx.obj``.
    """
    from icnload.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile


def _on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_CANCELLED)


def _write_crash_log() -> Path:
    """Save the traceback being handled under ``<data dir>/logs`` and return its path."""
    from icnload.config import get_data_dir

    log_path = get_data_dir() / "logs" / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.parent.mkdir(exist_ok=True)
    log_path.write_text(traceback.format_exc(), encoding="utf-8")
    return log_path


def main() -> None:
    """Console-script entry point for ``icnload``.

    An :class:`~icnload.exceptions.IcnLoadError` that escapes a command
    exits with that error's code. Anything else is a bug: its traceback
    goes to a crash log and the process exits with
    :data:`~icnload.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    from icnload.exceptions import IcnLoadError
    from icnload.output import error

    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except IcnLoadError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Debug log: {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
