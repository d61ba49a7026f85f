"""Step field validation.

Two layers check the same four fields:

* **Config-time** -- :func:`check_url`, :func:`check_username`,
  :func:`check_password` and :func:`check_file` give immediate feedback on
  what was typed into a step, before any expansion. They return a
  :class:`~icnload.models.FieldCheck` instead of raising so that every
  field can be reported at once (``icnload check``).
* **Run-time** -- :func:`validate_credentials` runs on the expanded values
  at the start of every workflow run and raises
  :class:`~icnload.exceptions.ConfigurationError` before any network call.
"""

from __future__ import annotations

import httpx

from icnload.exceptions import ConfigurationError
from icnload.models import CheckKind, Credentials, FieldCheck, StepConfig


def _required(field: str, value: str, label: str) -> FieldCheck:
    if not value:
        return FieldCheck(field=field, kind=CheckKind.ERROR, message=f"Please set a {label}")
    return FieldCheck(field=field)


def check_url(value: str) -> FieldCheck:
    """Validate the server URL field.

    An ``http(s)`` URL without a trailing slash only warns: the run adds
    the slash itself. Values that do not start with ``http`` are usually
    placeholders and are accepted as-is.
    """
    if not value:
        return FieldCheck(field="url", kind=CheckKind.ERROR, message="Please set a URL")
    if value.startswith("http") and not value.endswith("/"):
        return FieldCheck(field="url", kind=CheckKind.WARNING, message="URL should end with a /")
    return FieldCheck(field="url")


def check_username(value: str) -> FieldCheck:
    return _required("username", value, "Username")


def check_password(value: str) -> FieldCheck:
    return _required("password", value, "Password")


def check_file(value: str) -> FieldCheck:
    return _required("file", value, "File")


def check_step_config(config: StepConfig) -> list[FieldCheck]:
    """Run every field validator against a stored step configuration."""
    return [
        check_url(config.url),
        check_username(config.username),
        check_password(config.password),
        check_file(config.file),
    ]


def normalize_base_url(url: str) -> str:
    """Return *url* with exactly one trailing ``/`` guaranteed."""
    return url if url.endswith("/") else url + "/"


def validate_credentials(credentials: Credentials) -> Credentials:
    """Check that no expanded field is empty and normalise the base URL.

    Args:
        credentials: Values produced by
            :meth:`~icnload.models.StepConfig.expand`.

    Returns:
        A new :class:`~icnload.models.Credentials` whose ``server_url``
        ends with ``/``.

    Raises:
        ConfigurationError: Naming every empty field, one
            ``"<field> can't be empty."`` line each. Also raised when the URL
            cannot be parsed, e.g. because it holds a control character.
    """
    fields = {
        "file": credentials.plugin_file,
        "username": credentials.username,
        "password": credentials.password,
        "url": credentials.server_url,
    }
    empty = [name for name, value in fields.items() if not value]
    if empty:
        raise ConfigurationError(
            "\n".join(f"{name} can't be empty." for name in empty),
            fields=empty,
        )
    try:
        httpx.URL(credentials.server_url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"url is not a valid URL: {exc}", fields=["url"]) from exc
    return credentials.model_copy(
        update={"server_url": normalize_base_url(credentials.server_url)}
    )
