"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~icnload.exceptions.IcnLoadError` subclass.
CI systems running ``icnload run`` as a build step only need the zero /
non-zero distinction, but wrapper scripts can inspect the exact code to
tell a bad password from an unreachable server.

Example::

    $ icnload run --profile prod
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- logon returned no security token
"""

EXIT_SUCCESS = 0
"""The plug-in was reloaded and its configuration saved."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, or a required step field is empty."""

EXIT_AUTH_FAILURE = 3
"""Logon did not return a security token."""

EXIT_SERVER_ERROR = 5
"""The admin API answered with an unexpected HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CONTRACT_ERROR = 7
"""A response body was not the JSON document the admin API is expected to return."""

EXIT_CANCELLED = 130
"""Interrupted by SIGINT, e.g. an aborted build (128 + signal number)."""
