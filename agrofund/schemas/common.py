"""
Common / shared Pydantic schemas used across multiple endpoints.

- ``ApiResponse[T]``: the success envelope ``{message, data}``.
- ``ErrorResponse`` / ``ValidationErrorResponse``: the error envelope
  ``{message, error}``, declared on routes so OpenAPI documents it.
- ``Money``, ``Timestamp`` and ``DateOnly``: annotated types that fix how
  amounts and dates are rendered everywhere.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Generic, List, TypeVar

from pydantic import BaseModel, Field, PlainSerializer
from typing_extensions import Annotated

DataT = TypeVar("DataT")


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


# Decimal would serialise as a JSON string under Pydantic v2; clients expect numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

Timestamp = Annotated[
    datetime,
    PlainSerializer(
        lambda v: _utc(v).strftime("%Y-%m-%d %H:%M:%S"), return_type=str, when_used="json"
    ),
]

DateOnly = Annotated[
    datetime,
    PlainSerializer(lambda v: _utc(v).strftime("%Y-%m-%d"), return_type=str, when_used="json"),
]


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope returned by every endpoint."""

    message: str = Field(..., examples=["Campaign retrieved successfully"])
    data: DataT


class ErrorResponse(BaseModel):
    """Error envelope returned by all non-validation error handlers."""

    message: str = Field(..., description="Short summary", examples=["Campaign not found"])
    error: str = Field(
        ...,
        description="Human-readable detail",
        examples=["The requested campaign does not exist."],
    )


class ValidationErrorResponse(BaseModel):
    """
    Response body for 422 Unprocessable Entity.

    ``error`` maps each offending field to its messages so clients can
    attach them to form inputs.
    """

    message: str = Field(default="Validation failed")
    error: Dict[str, List[str]] = Field(
        ...,
        description="Per-field validation failures",
        examples=[{"email": ["The email has already been taken."]}],
    )
