"""Wire constants and pure helpers for the Content Navigator admin API.

Nothing in this module touches the network. The workflow feeds response
bodies through these functions, which is what lets the response contract
be tested with plain strings.

The server may prefix every JSON body with :data:`GUARD_PREFIX`, an
anti-hijacking convention that makes the body unusable as a ``<script>``
source. :func:`strip_guard_prefix` removes it before parsing.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from icnload.exceptions import AuthenticationError, ContractError
from icnload.models import PluginDescriptor

DESKTOP = "admin"
"""Desktop used for every admin call; always present, so users never have to name one."""

LOGON_PATH = "jaxrs/logon"
LOAD_PLUGIN_PATH = "jaxrs/loadPlugin"
SAVE_CONFIGURATION_PATH = "jaxrs/admin/configuration"

SECURITY_TOKEN = "security_token"
"""Logon response field, and the request header carrying it afterwards."""

GUARD_PREFIX = "{}&&"

DESCRIPTOR_FIELDS = ("name", "id", "version", "configClass")


def strip_guard_prefix(body: str) -> str:
    """Remove a leading ``{}&&`` guard from *body*, if present."""
    if body.startswith(GUARD_PREFIX):
        return body[len(GUARD_PREFIX):]
    return body


def parse_body(body: str) -> dict[str, Any]:
    """Strip the guard prefix and decode *body* as a JSON object.

    Raises:
        ContractError: If the body is not JSON or not a JSON object.
    """
    try:
        data = json.loads(strip_guard_prefix(body))
    except (json.JSONDecodeError, TypeError, RecursionError) as exc:
        raise ContractError(f"Response is not valid JSON: {exc}", body=body) from exc
    if not isinstance(data, dict):
        raise ContractError("Response is not a JSON object", body=body)
    return data


# --- Form builders ---


def logon_form(username: str, password: str) -> dict[str, str]:
    return {"userid": username, "password": password, "desktop": DESKTOP}


def load_plugin_form(plugin_file: str) -> dict[str, str]:
    return {"fileName": plugin_file, "desktop": DESKTOP}


def build_plugin_config(descriptor: PluginDescriptor, plugin_file: str) -> dict[str, Any]:
    """Build the ``json_post`` object that enables the reloaded plug-in.

    Args:
        descriptor: Identity returned by the reload call.
        plugin_file: The JAR path the plug-in was loaded from.

    Returns:
        The plug-in configuration entry, with no dependencies.
    """
    return {
        "enabled": True,
        "filename": plugin_file,
        "version": descriptor.version,
        "dependencies": [],
        "name": descriptor.name,
        "id": descriptor.id,
        "configClass": descriptor.config_class,
    }


def save_configuration_form(descriptor: PluginDescriptor, plugin_file: str) -> dict[str, str]:
    return {
        "action": "update",
        "id": descriptor.id,
        "configuration": "PluginConfig",
        "desktop": DESKTOP,
        "json_post": json.dumps(build_plugin_config(descriptor, plugin_file)),
    }


# --- Response contracts ---


def extract_security_token(body: str) -> str:
    """Return the ``security_token`` from a logon response body.

    Raises:
        ContractError: If the body is not a JSON object.
        AuthenticationError: If the token is missing, empty or not a string.
    """
    data = parse_body(body)
    token = data.get(SECURITY_TOKEN)
    if not isinstance(token, str) or not token:
        raise AuthenticationError("Logon response has no security_token", body=body)
    return token


def missing_descriptor_fields(data: dict[str, Any]) -> list[str]:
    """Return the descriptor fields absent from a reload response, in order."""
    return [field for field in DESCRIPTOR_FIELDS if field not in data]


def extract_descriptor(body: str) -> PluginDescriptor:
    """Return the plug-in descriptor from a reload response body.

    Raises:
        ContractError: If the body is not a JSON object, lacks any of
            ``name``, ``id``, ``version``, ``configClass``, or one of them
            is not a string.
    """
    data = parse_body(body)
    missing = missing_descriptor_fields(data)
    if missing:
        raise ContractError(
            f"Response is missing {', '.join(missing)}; "
            f"it should contain {', '.join(DESCRIPTOR_FIELDS)}",
            body=body,
        )
    try:
        return PluginDescriptor.model_validate(
            {field: data[field] for field in DESCRIPTOR_FIELDS}
        )
    except ValidationError as exc:
        raise ContractError(f"Invalid plug-in descriptor: {exc}", body=body) from exc


def extract_messages(body: str) -> list[str]:
    """Return the ``text`` of every entry in a save response's ``messages``.

    Raises:
        ContractError: If ``messages`` is missing or not a list, or an
            entry has no string ``text``.
    """
    data = parse_body(body)
    messages = data.get("messages")
    if not isinstance(messages, list):
        raise ContractError("Response has no messages array", body=body)
    texts: list[str] = []
    for index, message in enumerate(messages):
        text = message.get("text") if isinstance(message, dict) else None
        if not isinstance(text, str):
            raise ContractError(f"Message {index} has no text", body=body)
        texts.append(text)
    return texts
