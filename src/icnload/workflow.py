"""The logon / reload / save session sequence.

:class:`SessionWorkflow` reloads a plug-in on a Content Navigator server in
three dependent calls over one :class:`~icnload.client.AdminClient`:

1. ``jaxrs/logon`` -- returns the security token and sets session cookies.
2. ``jaxrs/loadPlugin`` -- reloads the JAR and returns the plug-in
   descriptor.
3. ``jaxrs/admin/configuration`` -- saves the descriptor as an enabled
   plug-in entry and returns confirmation messages.

Each step needs the previous step's output, so the first failure ends the
run: no later call is attempted and nothing is retried. Failures never
escape :meth:`SessionWorkflow.run`; they are written to the
:class:`Transcript` and reported as a failed
:class:`~icnload.models.WorkflowResult`.
"""

from __future__ import annotations

from typing import Optional

import httpx

from icnload.client import AdminClient
from icnload.exceptions import (
    ConfigurationError,
    ContractError,
    IcnLoadError,
)
from icnload.expand import VariableExpander
from icnload.models import (
    Credentials,
    PluginDescriptor,
    RequestConfig,
    StepConfig,
    WorkflowResult,
)
from icnload.output import get_output
from icnload.protocol import (
    LOAD_PLUGIN_PATH,
    LOGON_PATH,
    SAVE_CONFIGURATION_PATH,
    extract_descriptor,
    extract_messages,
    extract_security_token,
    load_plugin_form,
    logon_form,
    save_configuration_form,
)
from icnload.validation import validate_credentials


class Transcript:
    """Ordered, human-readable record of one run.

    Every line is kept in :attr:`lines` and echoed to the global
    :class:`~icnload.output.OutputManager` as it is written.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def info(self, line: str) -> None:
        self.lines.append(line)
        get_output().info(line)

    def ok(self) -> None:
        self.lines.append("OK")
        get_output().success("OK")

    def ko(self, exc: IcnLoadError) -> None:
        """Record a failed step followed by the reason taken from *exc*."""
        self.lines.append("KO")
        get_output().fail("KO")
        self.fail(str(exc))
        if isinstance(exc, ContractError) and exc.body is not None:
            self.fail(f"Response was: {exc.body}")

    def fail(self, line: str) -> None:
        self.lines.append(line)
        get_output().fail(line)


class SessionWorkflow:
    """Run the three-call reload sequence against one server.

    The workflow itself is stateless: every :meth:`run` opens its own
    :class:`~icnload.client.AdminClient`, so cookies and tokens never
    leak from one run into the next.

    Args:
        request: Default transport settings for runs that do not pass
            their own.
        transport: Optional :class:`httpx.BaseTransport` handed to every
            client, for tests.
    """

    def __init__(
        self,
        request: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._request = request or RequestConfig()
        self._transport = transport

    def perform(
        self,
        config: StepConfig,
        expander: Optional[VariableExpander] = None,
    ) -> WorkflowResult:
        """Expand a stored step configuration and run it.

        Args:
            config: The step as stored; it is not modified.
            expander: Placeholder resolver. Defaults to one over
                :data:`os.environ`.

        Returns:
            The :class:`~icnload.models.WorkflowResult` of :meth:`run`.
        """
        credentials = config.expand(expander or VariableExpander())
        return self.run(credentials, request=config.request)

    def run(
        self,
        credentials: Credentials,
        request: Optional[RequestConfig] = None,
    ) -> WorkflowResult:
        """Validate *credentials*, then log on, reload and save.

        Args:
            credentials: Expanded step values.
            request: Transport settings for this run.

        Returns:
            A :class:`~icnload.models.WorkflowResult`; ``success`` is
            ``True`` only when all three calls completed.
        """
        transcript = Transcript()
        descriptor: Optional[PluginDescriptor] = None

        try:
            credentials = validate_credentials(credentials)
        except ConfigurationError as exc:
            for line in str(exc).splitlines():
                transcript.fail(line)
            return _failed(transcript, exc)

        with AdminClient(
            credentials.server_url,
            request=request or self._request,
            transport=self._transport,
        ) as client:
            try:
                token = self.authenticate(client, credentials, transcript)
                descriptor = self.reload_plugin(
                    client, credentials.plugin_file, token, transcript
                )
                messages = self.save_configuration(
                    client, descriptor, credentials.plugin_file, token, transcript
                )
            except IcnLoadError as exc:
                return _failed(transcript, exc, descriptor)

        return WorkflowResult(
            success=True,
            transcript=transcript.lines,
            descriptor=descriptor,
            messages=messages,
        )

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def authenticate(
        self,
        client: AdminClient,
        credentials: Credentials,
        transcript: Transcript,
    ) -> str:
        """Log on and return the security token.

        The logon status code is not checked: a server that refuses the
        credentials still answers with a JSON body, just without a token.

        Raises:
            TransportError: If the call cannot be made.
            ContractError: If the body is not JSON.
            AuthenticationError: If the body has no token.
        """
        transcript.info(f"Connecting to ICN as {credentials.username}...")
        try:
            response = client.post_form(
                LOGON_PATH, logon_form(credentials.username, credentials.password)
            )
            token = extract_security_token(response.text)
        except IcnLoadError as exc:
            transcript.ko(exc)
            raise
        transcript.ok()
        return token

    def reload_plugin(
        self,
        client: AdminClient,
        plugin_file: str,
        token: str,
        transcript: Transcript,
    ) -> PluginDescriptor:
        """Reload the plug-in JAR and return its descriptor.

        Raises:
            TransportError: If the call cannot be made.
            ProtocolError: If the status is not 200.
            ContractError: If the descriptor is incomplete.
        """
        transcript.info(f"Reloading plugin {plugin_file}...")
        try:
            response = client.post_form(
                LOAD_PLUGIN_PATH, load_plugin_form(plugin_file), token=token
            )
            client.require_ok(response, LOAD_PLUGIN_PATH)
            descriptor = extract_descriptor(response.text)
        except IcnLoadError as exc:
            transcript.ko(exc)
            raise
        transcript.ok()
        transcript.info(
            f"Plug-in {descriptor.name} (id: {descriptor.id}) successfully reloaded."
        )
        return descriptor

    def save_configuration(
        self,
        client: AdminClient,
        descriptor: PluginDescriptor,
        plugin_file: str,
        token: str,
        transcript: Transcript,
    ) -> list[str]:
        """Save the reloaded plug-in as an enabled entry and return the server messages.

        Raises:
            TransportError: If the call cannot be made.
            ProtocolError: If the status is not 200.
            ContractError: If the ``messages`` array is missing or malformed.
        """
        transcript.info("Saving configuration...")
        try:
            response = client.post_form(
                SAVE_CONFIGURATION_PATH,
                save_configuration_form(descriptor, plugin_file),
                token=token,
            )
            client.require_ok(response, SAVE_CONFIGURATION_PATH)
            messages = extract_messages(response.text)
        except IcnLoadError as exc:
            transcript.ko(exc)
            raise
        transcript.ok()
        if messages:
            transcript.info("Message returned is:")
            for message in messages:
                transcript.info(message)
        return messages


def _failed(
    transcript: Transcript,
    exc: IcnLoadError,
    descriptor: Optional[PluginDescriptor] = None,
) -> WorkflowResult:
    return WorkflowResult(
        success=False,
        transcript=transcript.lines,
        descriptor=descriptor,
        error=type(exc).__name__,
        exit_code=exc.exit_code,
    )
