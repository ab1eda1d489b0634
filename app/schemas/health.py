"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="UP", description="Service status")


class ReadinessErrorResponse(BaseModel):
    """Response for GET /health/ready when the database does not answer (503)."""

    status: str = Field(default="DOWN", description="Readiness status")
    message: str = Field(..., description="Reason")
