"""icnload -- Reload an IBM Content Navigator plug-in from a CI build step.

This package logs on to a Content Navigator server's REST admin API,
reloads a plug-in JAR from a path on the server, and saves the resulting
plug-in configuration. It is meant to be called as a build step from any
CI system: the exit code carries the outcome.

Typical workflow::

    icnload profile save prod --url https://icn.example.com/navigator/ \\
        --username p8admin --password env:ICN_PASSWORD \\
        --file /opt/plugins/MyPlugin.jar
    icnload run --profile prod

Modules:
    app: Typer application and CLI entry point.
    workflow: The logon / reload / save session sequence.
    client: Cookie-bearing HTTP client for the admin API.
    protocol: Endpoint constants and pure response-contract helpers.
    models: Pydantic models shared across the package.
    config: XDG-aware step profile storage and precedence resolution.
    expand: ``$VAR`` placeholder expansion.
    validation: Field validators and credential checks.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
