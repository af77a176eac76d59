"""
Installation outcome models.
"""

from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InstallOutcome(str, Enum):
    """Tri-state result of one install attempt."""
    INSTALLED = "installed"
    DECLINED_OR_CANCELLED = "declined_or_cancelled"
    FAILED = "failed"


class InstallResult(BaseModel):
    """Result of attempting to remediate one missing tool."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tool_id": "omnisharp-standalone",
                "tool_name": "OmniSharp Language Server (Standalone)",
                "outcome": "failed",
                "reason": "error NU1101: Unable to find package omnisharp",
                "exit_code": 1,
                "duration_seconds": 12.4
            }
        }
    )

    tool_id: str = Field(..., description="Tool identifier")
    tool_name: str = Field(..., description="Tool display name")
    outcome: InstallOutcome = Field(
        default=InstallOutcome.DECLINED_OR_CANCELLED,
        description="Outcome of the attempt"
    )
    reason: Optional[str] = Field(None, description="Failure reason (stderr or error text)")
    exit_code: Optional[int] = Field(None, description="Exit code for automatic installs")

    # Timing
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == InstallOutcome.INSTALLED

    @property
    def failed(self) -> bool:
        return self.outcome == InstallOutcome.FAILED

    def complete(self, outcome: InstallOutcome, reason: Optional[str] = None) -> "InstallResult":
        """Mark the attempt as finished."""
        self.outcome = outcome
        if reason is not None:
            self.reason = reason
        self.completed_at = _utcnow()
        if self.started_at:
            self.duration_seconds = (self.completed_at - self.started_at).total_seconds()
        return self
