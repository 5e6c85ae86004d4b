from __future__ import annotations

from pydantic import BaseModel, Field

RouteId = int

# Fields that decide whether a desired route matches its applied counterpart.
COMPARABLE_FIELDS = ("name", "domain", "target", "enabled")


class RouteInput(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    domain: str = Field(..., min_length=1, description="Host the proxy matches on, e.g. app.localhost")
    target: str = Field(..., min_length=1, description="Upstream address, e.g. web:3000")
    enabled: bool = True


class Route(BaseModel):
    id: RouteId
    name: str
    domain: str
    target: str
    enabled: bool = True
    created_at: str | None = None
    updated_at: str | None = None


class AppliedRoute(BaseModel):
    id: RouteId
    name: str
    domain: str
    target: str
    enabled: bool


class HealthRecord(BaseModel):
    route_id: RouteId
    healthy: bool
    response_time_ms: int | None = None
    error_type: str | None = None

    # Extra detail the gateway may attach.
    domain: str | None = None
    target: str | None = None
    last_check: str | None = None
    error: str | None = None
    status_code: int | None = None
    dns_resolved: bool | None = None
    resolved_ip: str | None = None
    tip: str | None = None


class ReloadResponse(BaseModel):
    message: str = ""
    warning: str | None = None


class MessageResponse(BaseModel):
    message: str = ""
