"""Pydantic models for the network-support log collector"""

from typing import Dict, List, Optional, Any
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class LogState(str, Enum):
    """
    Collection state of a log archive.

    Wire values are kept from the first release of the API, so clients
    polling for "created" keep working.
    """
    IN_PROGRESS = "creating"
    DONE = "created"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not LogState.IN_PROGRESS


class LogJob(BaseModel):
    """One log collection request, as held by the registry"""

    id: str = Field(..., description="Unique log identifier (nanosecond timestamp)")
    artifact_name: str = Field(..., description="Archive base name, without extension")
    state: LogState = Field(default=LogState.IN_PROGRESS, description="Collection state")
    error: Optional[str] = Field(
        default=None,
        description="Why the collection failed (FAILED logs only)"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp"
    )


# ============================================================================
# API Response Models
# ============================================================================


class LogResource(BaseModel):
    """A log as returned by the /v1/logs endpoints"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Log identifier")
    type: str = Field(default="log", description="Resource type")
    state: LogState = Field(..., description="Collection state")
    error: Optional[str] = Field(default=None, description="Failure reason, if any")
    created_at: datetime = Field(..., alias="createdAt")
    download_url: str = Field(
        ...,
        alias="downloadURL",
        description="Where the archive can be downloaded once the state is 'created'"
    )
    links: Dict[str, str] = Field(default_factory=dict, description="Related URLs")


class LogCollection(BaseModel):
    """List response for GET /v1/logs"""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(default="collection")
    resource_type: str = Field(default="log", alias="resourceType")
    data: List[LogResource] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error response model"""

    type: str = Field(default="error")
    status: int = Field(..., description="HTTP status code")
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    request_id: Optional[str] = Field(
        default=None,
        description="Request ID for tracing"
    )
    details: Optional[Any] = Field(
        default=None,
        description="Additional error details (validation errors)"
    )
