"""Exception hierarchy for icnload.

All exceptions inherit from :class:`IcnLoadError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`icnload.exit_codes`.
:meth:`~icnload.workflow.SessionWorkflow.run` catches ``IcnLoadError``
raised by any step and turns it into a failed
:class:`~icnload.models.WorkflowResult`; the top-level handler in
:func:`icnload.app.main` catches anything raised outside a workflow run.

Subclass hierarchy::

    IcnLoadError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigurationError      (exit 2)
    +-- TransportError          (exit 6)
    +-- ProtocolError           (exit 5)
    +-- ContractError           (exit 7)
        +-- AuthenticationError (exit 3)
"""

from __future__ import annotations

from icnload.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_CONTRACT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERVER_ERROR,
)


class IcnLoadError(Exception):
    """Base exception for all icnload errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(IcnLoadError):
    """Raised for invalid CLI arguments (e.g. a malformed ``-e KEY=VALUE``)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigurationError(IcnLoadError):
    """Raised when step configuration is unusable.

    Covers fields left empty after variable expansion, missing or corrupt
    profiles, and credential sources that cannot be resolved. Always
    raised before any network call is made.

    Args:
        message: Human-readable error description.
        fields: Names of the offending fields, if any.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class TransportError(IcnLoadError):
    """Raised on network-level failures (timeout, DNS, connection refused, TLS)."""

    exit_code = EXIT_CONNECTION_ERROR


class ProtocolError(IcnLoadError):
    """Raised when the admin API answers with a status other than 200.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code received.
        status_line: ``HTTP <code> <reason>`` for the transcript.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status_code: int, status_line: str):
        super().__init__(message)
        self.status_code = status_code
        self.status_line = status_line


class ContractError(IcnLoadError):
    """Raised when a response body lacks the fields the workflow depends on.

    The raw body is kept so it can be written to the transcript for
    diagnosis.

    Args:
        message: Human-readable error description.
        body: The response body as received (guard prefix included).
    """

    exit_code = EXIT_CONTRACT_ERROR

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class AuthenticationError(ContractError):
    """Raised when the logon response carries no usable ``security_token``."""

    exit_code = EXIT_AUTH_FAILURE
