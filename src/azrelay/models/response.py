"""Response data models in the OpenAI API shape."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ModelCard(BaseModel):
    """A single entry of the models listing."""

    id: str
    object: Literal["model"] = "model"
    created: int = Field(description="Creation time in epoch milliseconds")
    owned_by: str = "user"


class ModelList(BaseModel):
    """Response for the models listing endpoint."""

    object: Literal["list"] = "list"
    data: list[ModelCard]


class ErrorDetail(BaseModel):
    """Error description with the backend's own error payload attached."""

    message: str
    details: Any = None


class ErrorEnvelope(BaseModel):
    """Error body returned by the models listing endpoint."""

    error: ErrorDetail


class ForwardError(BaseModel):
    """Error body returned when the chat request could not be forwarded."""

    error: str
