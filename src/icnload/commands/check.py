"""Check command -- validate step fields without contacting the server."""

from __future__ import annotations

from typing import Optional

import typer

from icnload.exceptions import IcnLoadError
from icnload.exit_codes import EXIT_INVALID_USAGE
from icnload.models import CheckKind
from icnload.output import error, print_table, success, warning


def check_command(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Stored step configuration to use."
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Navigator base URL."),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Administrator user id."),
    password: Optional[str] = typer.Option(None, "--password", help="Password or credential source."),
    file: Optional[str] = typer.Option(None, "--file", help="Plug-in JAR path on the server."),
) -> None:
    """Validate the four step fields as they would be stored.

    Prints one row per field. Exits with code 2 when any field is in
    error; warnings do not fail the check. Placeholders are not expanded
    and password sources are not resolved.
    """
    from icnload.config import resolve_step_config
    from icnload.validation import check_step_config

    profile = profile or (ctx.obj or {}).get("profile")
    try:
        config = resolve_step_config(
            profile=profile,
            url=url,
            username=username,
            password=password,
            file=file,
        )
    except IcnLoadError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    checks = check_step_config(config)
    print_table(
        ["Field", "Status", "Message"],
        [[c.field, c.kind.value, c.message] for c in checks],
        title="Step configuration",
    )

    failed = [c for c in checks if c.is_error]
    for c in checks:
        if c.kind == CheckKind.WARNING:
            warning(f"{c.field}: {c.message}")
    if failed:
        error(f"{len(failed)} field(s) need a value: {', '.join(c.field for c in failed)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    success("Step configuration looks valid.")
