"""Chat completions endpoint handler."""

import json
import logging
from typing import Any

import httpx
from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from azrelay.api.deps import BackendClientDep, RequestIdDep
from azrelay.core.normalize import is_streaming_request, normalize_chat_request
from azrelay.core.streaming import create_relay_response
from azrelay.models.response import ForwardError
from azrelay.utils.errors import FORWARD_FAILED, decode_error_body, log_error

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_CONTENT_TYPE = "application/json"


async def _read_json_body(request: Request) -> Any:
    """Decode the request body without validating its shape.

    An empty body decodes to an empty object.

    Raises:
        HTTPException: If the body is not valid JSON.
    """
    body = await request.body()
    if not body.strip():
        return {}

    try:
        return json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")


def _relay_backend_error(exc: httpx.HTTPStatusError) -> JSONResponse:
    """Relay a backend rejection with its original status and body."""
    return JSONResponse(
        status_code=exc.response.status_code,
        content=decode_error_body(exc.response),
    )


def _forward_failed() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ForwardError(error=FORWARD_FAILED).model_dump(),
    )


def _count_messages(payload: Any) -> int:
    if isinstance(payload, dict) and isinstance(payload.get("messages"), list):
        return len(payload["messages"])
    return 0


@router.post("/chat/completions")
async def chat_completions(
    request: Request,
    backend: BackendClientDep,
    request_id: RequestIdDep,
):
    """Forward a chat completion request to the backend.

    Developer messages become system messages and a missing ``max_tokens``
    defaults to 5000. Depending on ``stream`` the backend's event stream or
    its JSON body is relayed to the client unchanged.

    Returns:
        StreamingResponse for streamed requests, otherwise the backend body.
    """
    payload = normalize_chat_request(await _read_json_body(request))
    stream = is_streaming_request(payload)

    logger.info(
        f"Chat completion request: stream={stream}, "
        f"messages={_count_messages(payload)}"
    )

    try:
        if stream:
            backend_stream = await backend.open_stream(payload)
            logger.info("Streaming response back to client")
            return create_relay_response(backend_stream)

        backend_response = await backend.post_chat_completion(payload)
    except httpx.HTTPStatusError as e:
        log_error("Error forwarding request to Azure", e, request_id=request_id)
        return _relay_backend_error(e)
    except httpx.RequestError as e:
        log_error(
            "An unexpected error occurred while forwarding the request",
            e,
            request_id=request_id,
        )
        return _forward_failed()

    logger.info("Sending JSON response back to client")
    return Response(
        content=backend_response.content,
        status_code=200,
        headers={
            "Content-Type": backend_response.headers.get(
                "content-type", DEFAULT_CONTENT_TYPE
            )
        },
    )
