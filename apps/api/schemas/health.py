"""Health check response schema."""

from pydantic import Field

from apps.api.schemas.agents import CamelModel


class HealthResponse(CamelModel):
    ok: bool
    version: str
    time: str
    database: str = Field(description="SQL dialect of the configured store (postgresql, sqlite)")
