from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .api_models import AppliedRoute, HealthRecord, MessageResponse, ReloadResponse, Route, RouteId, RouteInput
from .settings import settings

T = TypeVar("T")

GENERIC_ERROR = "Request failed"


class GatewayError(Exception):
    """Base class for anything that went wrong talking to the gateway."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GatewayUnavailable(GatewayError):
    """The gateway could not be reached (connect error, timeout, ...)."""


class GatewayRejected(GatewayError):
    """The gateway answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class GatewayParseError(GatewayError):
    """The gateway answered 2xx but the body was not what we expected."""


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return GENERIC_ERROR
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return GENERIC_ERROR


class GatewayClient:
    """Async client for the proxy gateway's JSON API.

    Owns an ``httpx.AsyncClient`` unless one is passed in. Every call either
    returns parsed models or raises a ``GatewayError`` subclass; nothing is
    retried here.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_s if timeout_s is not None else settings.request_timeout_s,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.DecodingError as e:
            raise GatewayParseError(f"Undecodable body from {method} {path}: {e}") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise GatewayUnavailable(f"Gateway unreachable: {type(e).__name__}: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise GatewayRejected(_error_message(resp), resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayParseError(f"Invalid JSON from {method} {path}") from e

    @staticmethod
    def _parse(adapter: TypeAdapter[T], payload: Any, what: str) -> T:
        try:
            return adapter.validate_python(payload)
        except ValidationError as e:
            raise GatewayParseError(f"Unexpected {what} payload: {e.error_count()} validation error(s)") from e

    @classmethod
    def _route_or_none(cls, payload: Any) -> Route | None:
        # Some gateways echo the route, others only {"message": ...}.
        if isinstance(payload, dict) and "id" in payload:
            return cls._parse(_ROUTE, payload, "route")
        return None

    # --- routes (desired state) ---

    async def list_routes(self) -> list[Route]:
        return self._parse(_ROUTES, await self._request("GET", "/routes"), "routes")

    async def get_route(self, route_id: RouteId) -> Route:
        return self._parse(_ROUTE, await self._request("GET", f"/routes/{route_id}"), "route")

    async def create_route(self, route: RouteInput) -> Route | None:
        return self._route_or_none(await self._request("POST", "/routes", json=_dump(route)))

    async def update_route(self, route_id: RouteId, route: RouteInput) -> Route | None:
        return self._route_or_none(await self._request("PUT", f"/routes/{route_id}", json=_dump(route)))

    async def delete_route(self, route_id: RouteId) -> None:
        await self._request("DELETE", f"/routes/{route_id}")

    async def toggle_route(self, route_id: RouteId) -> Route | None:
        return self._route_or_none(await self._request("POST", f"/routes/{route_id}/toggle"))

    # --- proxy ---

    async def reload(self) -> ReloadResponse:
        payload = await self._request("POST", "/reload")
        return self._parse(_RELOAD, payload or {}, "reload")

    async def get_applied_state(self) -> list[AppliedRoute]:
        payload = await self._request("GET", "/applied-state")
        return self._parse(_APPLIED, payload or [], "applied-state")

    # --- health ---

    async def get_health(self) -> list[HealthRecord]:
        payload = await self._request("GET", "/health")
        return self._parse(_HEALTH, payload or [], "health")

    # --- config ---

    async def export_config(self) -> Any:
        return await self._request("GET", "/export")

    async def import_routes(self, routes: list[RouteInput]) -> MessageResponse:
        payload = await self._request("POST", "/import", json=[_dump(r) for r in routes])
        return self._parse(_MESSAGE, payload or {}, "import")


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump()


_ROUTE = TypeAdapter(Route)
_ROUTES = TypeAdapter(list[Route])
_APPLIED = TypeAdapter(list[AppliedRoute])
_HEALTH = TypeAdapter(list[HealthRecord])
_RELOAD = TypeAdapter(ReloadResponse)
_MESSAGE = TypeAdapter(MessageResponse)
