"""Chat request normalization.

OpenAI-style clients send a couple of fields the Azure endpoint handles
differently. The payload is otherwise passed through untouched: nothing
here validates it.
"""

import copy
from typing import Any

# Roles the backend does not accept, mapped to the role it does
ROLE_ALIASES: dict[str, str] = {
    "developer": "system",
}

# The backend's implicit max_tokens is 16, far below what clients expect
DEFAULT_MAX_TOKENS = 5000


def alias_message_roles(payload: dict[str, Any]) -> None:
    """Rewrite non-portable message roles in place.

    Only applies when ``messages`` is a list. Elements that are not
    mappings are left alone.
    """
    messages = payload.get("messages")
    if not isinstance(messages, list):
        return

    for message in messages:
        if isinstance(message, dict):
            role = message.get("role")
            if isinstance(role, str) and role in ROLE_ALIASES:
                message["role"] = ROLE_ALIASES[role]


def apply_default_max_tokens(payload: dict[str, Any]) -> None:
    """Set ``max_tokens`` to the default when missing or falsy."""
    if not payload.get("max_tokens"):
        payload["max_tokens"] = DEFAULT_MAX_TOKENS


def normalize_chat_request(payload: Any) -> Any:
    """Return a copy of a chat request with backend-compatible fields.

    Applies the role alias rewrite, then the max_tokens default. Bodies
    that are not JSON objects are returned unchanged.

    Args:
        payload: Decoded JSON request body.

    Returns:
        The normalized payload.
    """
    if not isinstance(payload, dict):
        return payload

    normalized = copy.deepcopy(payload)
    alias_message_roles(normalized)
    apply_default_max_tokens(normalized)
    return normalized


def is_streaming_request(payload: Any) -> bool:
    """Check whether the client asked for a streamed response."""
    return isinstance(payload, dict) and bool(payload.get("stream"))
