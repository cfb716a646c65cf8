"""Relay of streamed backend responses to the client.

Chunks are forwarded as they arrive, unmodified and in order. The backend
connection is closed once the relay stops, whatever the reason.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from azrelay.core.backend import BackendStream

logger = logging.getLogger(__name__)

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"


async def relay_stream(stream: BackendStream) -> AsyncIterator[bytes]:
    """Yield backend body chunks until the backend stream ends.

    A transport error mid-stream ends the relay; the status line has
    already been sent, so there is nothing left to report to the client.

    Args:
        stream: Open backend stream. Closed when iteration stops.

    Yields:
        Raw body chunks.
    """
    chunks = 0
    try:
        async for chunk in stream.iter_bytes():
            chunks += 1
            yield chunk
    except asyncio.CancelledError:
        logger.info("Stream cancelled, closing backend connection")
        raise
    except httpx.HTTPError as e:
        logger.error(f"Backend stream interrupted after {chunks} chunks: {e}")
    finally:
        await stream.aclose()
        logger.debug(f"Stream relay finished after {chunks} chunks")


def create_relay_response(stream: BackendStream) -> StreamingResponse:
    """Create a StreamingResponse piping a backend stream to the client.

    Args:
        stream: Open backend stream.

    Returns:
        StreamingResponse with event-stream headers.
    """
    headers = {
        "Content-Type": EVENT_STREAM_MEDIA_TYPE,
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",  # Disable nginx buffering
    }

    # The background close covers disconnects that skip the generator's cleanup
    return StreamingResponse(
        relay_stream(stream),
        headers=headers,
        background=BackgroundTask(stream.aclose),
    )
