"""Canonical Pydantic models shared across all icnload modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig` and :class:`StepConfig`.

**Run models** -- built and discarded within one workflow run:
    :class:`Credentials`, :class:`PluginDescriptor`, :class:`WorkflowResult`
    and :class:`FieldCheck`.

All models use Pydantic v2. Configuration models are frozen so that
variable expansion always produces new values instead of overwriting the
stored ones.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

from icnload.exit_codes import EXIT_SUCCESS

if TYPE_CHECKING:
    from icnload.expand import VariableExpander


# --- Configuration models ---


class RequestConfig(BaseModel):
    """HTTP transport settings applied to every call of a run."""

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class StepConfig(BaseModel):
    """The four fields of one build step, as stored on disk.

    Values are kept exactly as entered and may contain ``$VAR`` or
    ``${VAR}`` placeholders. The ``password`` may also be a credential
    source descriptor (``env:VAR``, ``file:/path`` or ``prompt``), see
    :func:`~icnload.config.resolve_credential`.

    See Also:
        :func:`~icnload.config.load_profile`: Deserialise a step by name.
        :func:`~icnload.config.save_profile`: Persist a step to disk.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="", description="Navigator base URL, e.g. http://host/navigator/")
    username: str = Field(default="", description="Administrator user id")
    password: str = Field(default="", description="Password or credential source")
    file: str = Field(default="", description="Plug-in JAR path on the server")
    request: RequestConfig = Field(default_factory=RequestConfig)

    def expand(self, expander: VariableExpander) -> Credentials:
        """Return run credentials with every placeholder resolved.

        The stored configuration is left untouched.

        Args:
            expander: Resolves ``$VAR`` placeholders.

        Returns:
            A new :class:`Credentials` (not yet validated).
        """
        return Credentials(
            server_url=expander.expand(self.url),
            username=expander.expand(self.username),
            password=expander.expand(self.password),
            plugin_file=expander.expand(self.file),
        )


# --- Run models ---


class Credentials(BaseModel):
    """Resolved values a workflow run works on.

    Produced by :meth:`StepConfig.expand`. Fields may still be empty here;
    :func:`~icnload.validation.validate_credentials` rejects that and
    normalises ``server_url`` to end with ``/``.
    """

    model_config = ConfigDict(frozen=True)

    server_url: str = ""
    username: str = ""
    password: str = Field(default="", repr=False)
    plugin_file: str = ""


class PluginDescriptor(BaseModel):
    """Plug-in identity returned by the ``loadPlugin`` call.

    Passed back verbatim to the configuration save call. The server
    spells the last field ``configClass``; it is accepted by that alias or
    by its Python name.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    id: str
    version: str
    config_class: str = Field(alias="configClass")


class WorkflowResult(BaseModel):
    """Outcome of one :meth:`~icnload.workflow.SessionWorkflow.run`.

    ``transcript`` holds every line written during the run, in order.
    When ``success`` is ``False``, ``error`` names the exception class that
    stopped the run and ``exit_code`` is taken from it.
    """

    success: bool
    transcript: list[str] = Field(default_factory=list)
    descriptor: Optional[PluginDescriptor] = None
    messages: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    exit_code: int = EXIT_SUCCESS


class CheckKind(str, enum.Enum):
    """Severity of a field validation result."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class FieldCheck(BaseModel):
    """Result of validating one step field at configuration time."""

    field: str
    kind: CheckKind = CheckKind.OK
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.kind == CheckKind.ERROR
