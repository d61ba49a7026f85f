"""Profile commands -- manage stored step configurations.

A profile holds the four fields of one build step (url, username,
password, file) plus transport settings, as entered: placeholders stay
unexpanded until a run. Profiles live in the icnload config directory,
see :mod:`icnload.config`.
"""

from __future__ import annotations

from typing import Optional

import typer

from icnload.exceptions import IcnLoadError
from icnload.output import error, format_response, info, print_table, success, suggest

profile_app = typer.Typer(no_args_is_help=True)

_MASK = "********"


def _masked(data: dict) -> dict:
    from icnload.config import is_credential_source

    password = data.get("password", "")
    if password and not is_credential_source(password):
        data["password"] = _MASK
    return data


@profile_app.command("save")
def profile_save(
    name: str = typer.Argument(help="Profile name."),
    url: str = typer.Option("", "--url", help="Navigator base URL."),
    username: str = typer.Option("", "--username", "-u", help="Administrator user id."),
    password: str = typer.Option(
        "", "--password", help="Password, or env:VAR / file:/path / prompt."
    ),
    file: str = typer.Option("", "--file", help="Plug-in JAR path on the server."),
    timeout: float = typer.Option(30, "--timeout", help="Request timeout in seconds."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing profile."),
) -> None:
    """Store a step configuration under NAME.

    Field problems are reported as warnings; the profile is saved anyway
    so that placeholders can be filled in at run time.

    Example::

        icnload profile save prod --url https://icn.example.com/navigator/ \\
            -u p8admin --password env:ICN_PASSWORD --file /opt/plugins/My.jar
    """
    from icnload.config import profile_exists, save_profile
    from icnload.models import RequestConfig, StepConfig
    from icnload.validation import check_step_config

    config = StepConfig(
        url=url,
        username=username,
        password=password,
        file=file,
        request=RequestConfig(timeout=timeout, verify_ssl=not insecure),
    )
    try:
        if profile_exists(name) and not force:
            error(f"Profile '{name}' already exists.")
            suggest("Use --force to overwrite it.")
            raise typer.Exit(code=1)
        path = save_profile(name, config)
    except IcnLoadError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    for check in check_step_config(config):
        if check.message:
            info(f"{check.field}: {check.message}")
    success(f"Profile '{name}' saved to {path}")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Show a stored profile. Literal passwords are masked."""
    from icnload.config import load_profile

    try:
        config = load_profile(name)
    except IcnLoadError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    format_response(_masked(config.model_dump(mode="json")))


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles."""
    from icnload.config import list_profiles, load_profile

    names = list_profiles()
    if not names:
        info("No profiles stored.")
        suggest("Create one with: icnload profile save NAME --url ... --file ...")
        return

    rows: list[list[str]] = []
    for name in names:
        try:
            config = load_profile(name)
        except IcnLoadError as exc:
            rows.append([name, "", "", f"invalid: {exc}"])
            continue
        rows.append([name, config.url, config.username, config.file])
    print_table(["Name", "URL", "Username", "File"], rows, title="Profiles")


@profile_app.command("delete")
def profile_delete(
    name: str = typer.Argument(help="Profile name."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a stored profile."""
    from icnload.config import delete_profile, profile_exists

    try:
        exists = profile_exists(name)
    except IcnLoadError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)
    if not exists:
        error(f"Profile '{name}' not found.")
        raise typer.Exit(code=1)
    if not force and not typer.confirm(f"Delete profile '{name}'?"):
        raise typer.Exit(code=1)
    delete_profile(name)
    success(f"Profile '{name}' deleted.")
