"""In-memory reference gateway.

Implements the gateway API that proxyctl talks to, without a real proxy
behind it. Useful for local development (``uvicorn services.gateway.app:app
--port 8090``) and as the test double. The /simulate endpoints inject faults.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse

from proxyctl.api_models import RouteInput

COMPARABLE = ("id", "name", "domain", "target", "enabled")

app = FastAPI(title="Reference proxy gateway")
api = APIRouter(prefix="/api")

APP_STATE: dict[str, Any] = {}


def reset() -> None:
    APP_STATE.clear()
    APP_STATE.update(
        {
            "routes": [],
            "applied": [],
            "next_id": 1,
            "unhealthy": {},  # route_id -> error_type
            "reload_error": None,
            "reload_warning": None,
            "apply_delay_s": 0.0,
            "calls": {},  # endpoint -> hit count
        }
    )


reset()


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _hit(name: str) -> None:
    APP_STATE["calls"][name] = APP_STATE["calls"].get(name, 0) + 1


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _find(route_id: int) -> dict[str, Any] | None:
    for r in APP_STATE["routes"]:
        if r["id"] == route_id:
            return r
    return None


def _add(body: RouteInput) -> dict[str, Any]:
    ts = _now()
    route = {"id": APP_STATE["next_id"], **body.model_dump(), "created_at": ts, "updated_at": ts}
    APP_STATE["next_id"] += 1
    APP_STATE["routes"].append(route)
    return route


def _snapshot() -> None:
    APP_STATE["applied"] = [{k: r[k] for k in COMPARABLE} for r in APP_STATE["routes"]]


@api.get("/routes")
def list_routes():
    _hit("list_routes")
    return APP_STATE["routes"]


@api.get("/routes/{route_id}")
def get_route(route_id: int):
    route = _find(route_id)
    if route is None:
        return _error(404, "Route not found")
    return route


@api.post("/routes", status_code=201)
def create_route(body: RouteInput):
    _hit("create_route")
    for r in APP_STATE["routes"]:
        if r["domain"] == body.domain:
            return _error(409, f"Domain {body.domain} is already routed")
    return _add(body)


@api.put("/routes/{route_id}")
def update_route(route_id: int, body: RouteInput):
    _hit("update_route")
    route = _find(route_id)
    if route is None:
        return _error(404, "Route not found")
    route.update(body.model_dump(), updated_at=_now())
    return {"message": "Route updated"}


@api.delete("/routes/{route_id}")
def delete_route(route_id: int):
    _hit("delete_route")
    if _find(route_id) is None:
        return _error(404, "Route not found")
    APP_STATE["routes"] = [r for r in APP_STATE["routes"] if r["id"] != route_id]
    return {"message": "Route deleted"}


@api.post("/routes/{route_id}/toggle")
def toggle_route(route_id: int):
    _hit("toggle_route")
    route = _find(route_id)
    if route is None:
        return _error(404, "Route not found")
    route.update(enabled=not route["enabled"], updated_at=_now())
    return route


@api.get("/health")
def health():
    _hit("health")
    out = []
    for r in APP_STATE["routes"]:
        if not r["enabled"]:
            continue
        error_type = APP_STATE["unhealthy"].get(r["id"])
        rec: dict[str, Any] = {
            "route_id": r["id"],
            "domain": r["domain"],
            "target": r["target"],
            "healthy": error_type is None,
            "last_check": _now(),
            "dns_resolved": True,
        }
        if error_type is None:
            rec["response_time_ms"] = 5
        else:
            rec["error_type"] = error_type
            rec["tip"] = "Unable to connect. Verify the target container and port are correct."
        out.append(rec)
    return out


@api.post("/reload")
async def reload_proxy():
    _hit("reload")
    if APP_STATE["reload_error"]:
        return _error(500, APP_STATE["reload_error"])

    delay = float(APP_STATE["apply_delay_s"])
    if delay > 0:
        # Applied state lags behind the accepted reload, like a real proxy.
        asyncio.get_running_loop().call_later(delay, _snapshot)
    else:
        _snapshot()

    body: dict[str, Any] = {"message": "Proxy reloaded successfully"}
    if APP_STATE["reload_warning"]:
        body["warning"] = APP_STATE["reload_warning"]
    return body


@api.get("/applied-state")
def applied_state():
    _hit("applied_state")
    return APP_STATE["applied"]


@api.get("/export")
def export_config():
    _hit("export")
    return [{k: r[k] for k in ("name", "domain", "target", "enabled")} for r in APP_STATE["routes"]]


@api.post("/import")
def import_config(body: list[RouteInput]):
    _hit("import")
    imported = 0
    for item in body:
        # Domain is unique: an imported route replaces the existing one and gets a new id.
        APP_STATE["routes"] = [r for r in APP_STATE["routes"] if r["domain"] != item.domain]
        _add(item)
        imported += 1
    return {"message": f"Imported {imported} routes"}


# --- fault injection ---


@api.post("/simulate/unhealthy/{route_id}")
def simulate_unhealthy(route_id: int, error_type: str = "connection_refused"):
    APP_STATE["unhealthy"][route_id] = error_type
    return {"msg": f"Route {route_id} now reports {error_type}"}


@api.post("/simulate/reload-failure")
def simulate_reload_failure(message: str = "Failed to reload Caddy"):
    APP_STATE["reload_error"] = message
    return {"msg": "Reload will fail"}


@api.post("/simulate/apply-delay/{seconds}")
def simulate_apply_delay(seconds: float):
    APP_STATE["apply_delay_s"] = max(0.0, seconds)
    return {"msg": f"Applied state will lag by {seconds}s"}


@api.post("/simulate/reset")
def simulate_reset():
    reset()
    return {"msg": "Gateway reset"}


app.include_router(api)
