"""Where icnload keeps its files, and how a run's step is put together.

* Directories follow the XDG Base Directory layout on Linux and BSD and
  fall back to ``~/.icnload/`` elsewhere (:func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`).
* A profile is one build step stored as ``profiles/<name>.json``; see
  :func:`load_profile`, :func:`save_profile`, :func:`delete_profile`.
* :func:`resolve_step_config` layers CLI flags over ``ICNLOAD_*``
  environment variables over the stored profile.
* :func:`resolve_password` turns an ``env:``, ``file:`` or ``prompt``
  password source into the password itself, after expansion.

Profiles are stored unexpanded; placeholders are resolved per run by
:class:`~icnload.expand.VariableExpander`.
"""

from __future__ import annotations

import getpass
import os
import platform
import re
import sys
import tempfile
from pathlib import Path
from typing import Optional

from icnload.exceptions import ConfigurationError
from icnload.models import Credentials, StepConfig

_APP_NAME = "icnload"
_PROFILE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

# XDG variable, default location under $HOME, fallback under ~/.icnload
_DIRS = {
    "config": ("XDG_CONFIG_HOME", (".config",), ()),
    "data": ("XDG_DATA_HOME", (".local", "share"), ("data",)),
}

ENV_PREFIX = "ICNLOAD_"
STEP_FIELDS = ("url", "username", "password", "file")


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_default, fallback = _DIRS[kind]
    if _is_xdg_platform():
        root = Path(os.environ.get(env_var) or Path.home().joinpath(*home_default))
        path = root / _APP_NAME
    else:
        path = Path.home().joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the config directory (``~/.config/icnload`` by default), creating it."""
    return _app_dir("config")


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it."""
    return _app_dir("data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(exist_ok=True)
    return path


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename, leaving no partial file behind.

    The file is created mode 0600 because a profile may hold a password.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            os.chmod(tmp_name, 0o600)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# --- Profiles ---


def _profile_path(name: str) -> Path:
    if not _PROFILE_NAME.match(name):
        raise ConfigurationError(
            f"Invalid profile name '{name}': use letters, digits, '.', '_' or '-'"
        )
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    return sorted(path.stem for path in get_profiles_dir().glob("*.json"))


def load_profile(name: str) -> StepConfig:
    """Read profile *name* back into a :class:`~icnload.models.StepConfig`.

    Raises:
        ConfigurationError: If the profile is missing, is not JSON, or
            does not have the shape of a step.
    """
    path = _profile_path(name)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(f"Profile '{name}' not found at {path}") from None
    try:
        return StepConfig.model_validate_json(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(name: str, config: StepConfig) -> Path:
    """Write *config* as profile *name*, replacing any previous version.

    Returns:
        The profile's path.
    """
    path = _profile_path(name)
    _atomic_write(path, config.model_dump_json(indent=2) + "\n")
    return path


def delete_profile(name: str) -> None:
    path = _profile_path(name)
    try:
        path.unlink()
    except FileNotFoundError:
        raise ConfigurationError(f"Profile '{name}' not found at {path}") from None


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Precedence resolution ---


def resolve_step_config(
    profile: Optional[str] = None,
    url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    file: Optional[str] = None,
) -> StepConfig:
    """Resolve the step a run will use.

    Precedence per field (high to low):
        1. CLI flags (``url``, ``username``, ``password``, ``file``)
        2. Environment variables (``ICNLOAD_URL``, ``ICNLOAD_USERNAME``,
           ``ICNLOAD_PASSWORD``, ``ICNLOAD_FILE``)
        3. The named profile
        4. Empty string

    Args:
        profile: Profile name; ``ICNLOAD_PROFILE`` is used when ``None``.

    Returns:
        A new :class:`~icnload.models.StepConfig`; the stored profile is
        not modified. A password source such as ``env:VAR`` is kept as
        written; see :func:`resolve_password`.

    Raises:
        ConfigurationError: If the profile cannot be loaded.
    """
    profile_name = profile or os.environ.get(f"{ENV_PREFIX}PROFILE") or None
    base = load_profile(profile_name) if profile_name else StepConfig()

    cli_values = {"url": url, "username": username, "password": password, "file": file}
    values: dict[str, str] = {}
    for field in STEP_FIELDS:
        value = cli_values[field]
        if value is None:
            value = os.environ.get(f"{ENV_PREFIX}{field.upper()}") or None
        if value is None:
            value = getattr(base, field)
        values[field] = value

    return StepConfig(request=base.request, **values)


# --- Password sources ---

_SOURCE_PREFIXES = ("env:", "file:")


def is_credential_source(value: str) -> bool:
    """Return True when *value* names where to read a password rather than being one."""
    return value.startswith(_SOURCE_PREFIXES) or value == "prompt"


def resolve_credential(source: str) -> str:
    """Read the password named by *source*.

    ``env:NAME`` reads an environment variable, ``file:PATH`` reads a file
    (surrounding whitespace stripped) and ``prompt`` asks on the terminal.

    Raises:
        ConfigurationError: If the variable is unset, the file is missing
            or unreadable, stdin is not a TTY, or the source is unknown.
    """
    kind, _, ref = source.partition(":")

    if kind == "env":
        if ref not in os.environ:
            raise ConfigurationError(
                f"Environment variable '{ref}' is not set (source: {source})",
                fields=["password"],
            )
        return os.environ[ref]

    if kind == "file":
        path = Path(ref).expanduser()
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"Credential file not found: {path} (source: {source})",
                fields=["password"],
            ) from exc
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigurationError(
                "Cannot prompt for password: stdin is not a TTY (source: prompt)",
                fields=["password"],
            )
        return getpass.getpass("ICN password: ")

    raise ConfigurationError(f"Unknown credential source format: {source}")


def resolve_password(credentials: Credentials) -> Credentials:
    """Replace a password source in expanded *credentials* with the password it names.

    Runs after placeholder expansion, so the secret read from the source
    is used exactly as stored: a ``$`` in it is never expanded.
    """
    if not is_credential_source(credentials.password):
        return credentials
    return credentials.model_copy(
        update={"password": resolve_credential(credentials.password)}
    )
