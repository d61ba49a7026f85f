"""Placeholder expansion for step configuration values.

CI servers hand build parameters to a step through environment variables.
Step fields may reference them as ``$NAME`` or ``${NAME}``; names with no
value are left in place so that a typo shows up verbatim in the transcript
instead of silently turning into an empty string.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from string import Template
from typing import Optional

from icnload.exceptions import InvalidUsageError


class VariableExpander:
    """Resolve ``$NAME`` / ``${NAME}`` placeholders from an environment.

    Args:
        env: Base variables. Defaults to a snapshot of :data:`os.environ`.
        overrides: Extra variables that take precedence over *env*
            (e.g. from ``-e KEY=VALUE`` on the command line).

    Example::

        expander = VariableExpander({"JOB": "nightly"})
        expander.expand("/plugins/${JOB}/My.jar")  # "/plugins/nightly/My.jar"
    """

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> None:
        variables = dict(os.environ if env is None else env)
        variables.update(overrides or {})
        self._variables = variables

    @property
    def variables(self) -> dict[str, str]:
        return dict(self._variables)

    def expand(self, value: str) -> str:
        """Return *value* with known placeholders substituted."""
        if not value or "$" not in value:
            return value
        return Template(value).safe_substitute(self._variables)


def parse_assignments(assignments: list[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a dict.

    Args:
        assignments: Raw strings as given on the command line.

    Returns:
        Mapping of keys to values. Later duplicates win.

    Raises:
        InvalidUsageError: If an entry has no ``=`` or an empty key.
    """
    result: dict[str, str] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidUsageError(f"Expected KEY=VALUE, got '{item}'")
        result[key] = value
    return result
