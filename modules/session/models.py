"""
Session module data models.
"""

from typing import Optional
from pydantic import BaseModel, Field


class SessionState(BaseModel):
    """
    Result of the most recent session validation.

    ``last_validated`` is a monotonic clock reading, used only to decide
    whether a cached validation is still fresh.
    """

    is_valid: bool = Field(default=False, description="Whether the last check found a session")
    last_validated: float = Field(default=0.0, description="Monotonic time of the last check")
    user_id: Optional[str] = Field(None, description="User the validated session belongs to")

    model_config = {"frozen": True}
