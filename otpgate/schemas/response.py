from pydantic import BaseModel, Field
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None
    retry_after: Optional[int] = Field(default=None, serialization_alias="retryAfter")

    def to_content(self) -> dict:
        """Serialized body; retryAfter only appears on rate-limit errors."""
        content = self.model_dump(by_alias=True)
        if content["retryAfter"] is None:
            content.pop("retryAfter")
        return content
