"""Models endpoint handler.

The backend has no model listing of its own, so the listing is synthesized
from the configured model name after a minimal chat completion confirms
the endpoint and key work.
"""

import logging
import time
from typing import Any

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from azrelay.api.deps import BackendClientDep, RequestIdDep, SettingsDep
from azrelay.models.response import ErrorDetail, ErrorEnvelope, ModelCard, ModelList
from azrelay.utils.errors import (
    API_KEY_VALIDATION_FAILED,
    INTERNAL_SERVER_ERROR,
    decode_error_body,
    describe_exception,
    log_error,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def build_model_list(model_name: str) -> ModelList:
    """Build the single-entry listing for the configured model."""
    return ModelList(
        data=[
            ModelCard(
                id=model_name,
                created=int(time.time() * 1000),
            )
        ]
    )


def _error_response(status_code: int, message: str, details: Any) -> JSONResponse:
    envelope = ErrorEnvelope(error=ErrorDetail(message=message, details=details))
    return JSONResponse(status_code=status_code, content=envelope.model_dump())


@router.get(
    "/models",
    response_model=ModelList,
    responses={
        401: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)
async def list_models(
    settings: SettingsDep,
    backend: BackendClientDep,
    request_id: RequestIdDep,
):
    """List available models in the OpenAI format.

    Probes the backend first. Backend rejections are returned with the
    backend's status code; transport failures return 500.
    """
    try:
        await backend.probe()
    except httpx.HTTPStatusError as e:
        log_error("API key validation failed", e, request_id=request_id)
        return _error_response(
            e.response.status_code,
            API_KEY_VALIDATION_FAILED,
            decode_error_body(e.response),
        )
    except httpx.RequestError as e:
        log_error(
            "An unexpected error occurred during API key validation",
            e,
            request_id=request_id,
        )
        return _error_response(500, INTERNAL_SERVER_ERROR, describe_exception(e))

    logger.info(f"API key validated, listing model {settings.model_name}")

    return build_model_list(settings.model_name or "")
