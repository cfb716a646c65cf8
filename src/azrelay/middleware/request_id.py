"""Request ID middleware for request tracing.

Written as plain ASGI middleware so streamed bodies and client disconnects
pass straight through.
"""

import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"


def is_valid_uuid(value: str) -> bool:
    """Check if a string is a valid UUID.

    Args:
        value: String to validate.

    Returns:
        True if valid UUID, False otherwise.
    """
    try:
        uuid.UUID(value)
        return True
    except (ValueError, TypeError, AttributeError):
        return False


def generate_request_id() -> str:
    """Generate a new request ID.

    Returns:
        A new UUID4 string.
    """
    return str(uuid.uuid4())


class RequestIdMiddleware:
    """Assign every HTTP request an X-Request-ID.

    An incoming valid UUID is kept, anything else is replaced. The ID is
    stored in ``request.state.request_id`` and echoed on the response.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER, "")
        if not request_id or not is_valid_uuid(request_id):
            request_id = generate_request_id()

        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
            await send(message)

        await self.app(scope, receive, send_with_request_id)
