"""Error response schema shared by every failing endpoint."""
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Used for all error responses (4xx, 5xx) across the API.
    """

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["validation_error", "unauthorized", "not_found"]
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["API key is expired or disabled", "API key not found"]
    )
    details: Optional[Any] = Field(
        None,
        description="Additional error context (field validation errors, etc.)",
        examples=[{"expires_in_days": 0}]
    )
    request_id: Optional[str] = Field(None, description="Correlation ID of the failed request")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "unauthorized",
                    "message": "Missing API key; pass it as the 'key' query parameter or a Bearer token"
                },
                {
                    "error": "forbidden",
                    "message": "API keys already exist; the initial key can no longer be created"
                },
                {
                    "error": "validation_error",
                    "message": "Request validation failed",
                    "details": [
                        {"loc": ["body", "expires_in_days"], "msg": "Input should be greater than or equal to 1"}
                    ]
                }
            ]
        }
    }
