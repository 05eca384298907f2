# This project was developed with assistance from AI tools.
"""RFC 7807 Problem Details error response schema."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Problem Details body returned for every non-2xx response.

    See https://datatracker.ietf.org/doc/html/rfc7807
    """

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(description="Short summary, derived from the status code.")
    status: int
    detail: str = Field(default="", description="What went wrong for this request.")
    request_id: str = Field(default="", description="Correlation ID echoed from X-Request-ID.")
    errors: list[dict[str, Any]] | None = Field(
        default=None,
        description="Field-level validation failures (422 only).",
    )
