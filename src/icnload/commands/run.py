"""Run command -- reload the plug-in for one build step.

Resolves the step from ``--profile`` / flags / ``ICNLOAD_*`` variables,
expands ``$VAR`` placeholders, reads the password from its source
(``env:``, ``file:``, ``prompt``) if one is given, and runs the
:class:`~icnload.workflow.SessionWorkflow`. The transcript goes to
stderr; with ``--json`` the :class:`~icnload.models.WorkflowResult` is
printed to stdout. The exit code is 0 on success and the failing error's
code otherwise.
"""

from __future__ import annotations

from typing import Optional

import typer

from icnload.exceptions import IcnLoadError
from icnload.output import OutputFormat, error, format_response, get_output, success


def run_command(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Stored step configuration to use."
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Navigator base URL."),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Administrator user id."),
    password: Optional[str] = typer.Option(
        None, "--password", help="Password, or env:VAR / file:/path / prompt."
    ),
    file: Optional[str] = typer.Option(None, "--file", help="Plug-in JAR path on the server."),
    env: list[str] = typer.Option(
        [], "--env", "-e", help="Extra KEY=VALUE for placeholder expansion (repeatable)."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification."),
) -> None:
    """Log on, reload the plug-in and save its configuration.

    Example::

        icnload --profile prod run
        icnload run --url http://icn:9080/navigator/ -u p8admin \\
            --password env:ICN_PASSWORD --file '/plugins/${BUILD_TAG}.jar'
    """
    from icnload.config import resolve_password, resolve_step_config
    from icnload.expand import VariableExpander, parse_assignments
    from icnload.workflow import SessionWorkflow

    profile = profile or (ctx.obj or {}).get("profile")
    try:
        overrides = parse_assignments(env)
        config = resolve_step_config(
            profile=profile, url=url, username=username, password=password, file=file
        )
    except IcnLoadError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    if timeout is not None or insecure:
        request = config.request.model_copy(
            update={
                "timeout": timeout if timeout is not None else config.request.timeout,
                "verify_ssl": config.request.verify_ssl and not insecure,
            }
        )
        config = config.model_copy(update={"request": request})

    try:
        credentials = resolve_password(config.expand(VariableExpander(overrides=overrides)))
    except IcnLoadError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    result = SessionWorkflow().run(credentials, request=config.request)

    if get_output().format == OutputFormat.JSON:
        format_response(result.model_dump(mode="json", by_alias=True))

    if not result.success:
        raise typer.Exit(code=result.exit_code)
    success("Plug-in reloaded and configuration saved.")
