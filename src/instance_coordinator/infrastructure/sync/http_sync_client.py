"""HTTP adapter for the synchronization collector."""

from __future__ import annotations

import asyncio
import json
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from instance_coordinator.domain.errors import CoordinationError
from instance_coordinator.domain.models import RunParams
from instance_coordinator.domain.sync_models import (
    OutcomeReportMessage,
    SignalEntryMessage,
    SignalEntryResponse,
    StateCountResponse,
    SyncModel,
)
from instance_coordinator.infrastructure.sync.base_sync_client import BaseSyncClient

_ResponseModel = TypeVar("_ResponseModel", bound=SyncModel)


class HttpSyncClient(BaseSyncClient):
    """Talks to the collector over one pooled HTTP session.

    Barriers are resolved by polling the state counter; transport failures are
    raised immediately and never retried here.
    """

    def __init__(
        self,
        base_url: str,
        run_params: RunParams,
        instance_id: str,
        request_timeout_seconds: float = 10.0,
        barrier_timeout_seconds: float = 300.0,
        barrier_poll_seconds: float = 0.5,
        sidecar_enabled: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            run_params=run_params,
            instance_id=instance_id,
            barrier_timeout_seconds=barrier_timeout_seconds,
            sidecar_enabled=sidecar_enabled,
        )
        if barrier_poll_seconds <= 0:
            raise ValueError("barrier_poll_seconds must be > 0.")
        self._base_url = _collector_url(base_url)
        self._request_timeout_seconds = request_timeout_seconds
        self._barrier_poll_seconds = barrier_poll_seconds
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def close(self) -> None:
        if self._http_client is None:
            return
        await self._http_client.aclose()
        self._http_client = None

    async def _increment(self, key: str) -> int:
        response = await self._request(
            "POST",
            f"/states/{quote(key, safe='')}/entries",
            SignalEntryMessage(instance_id=self._instance_id),
        )
        return self._parse(response, SignalEntryResponse).seq

    async def _wait_for_count(self, key: str, target: int) -> None:
        while True:
            count = await self._count(key)
            if count >= target:
                return
            await asyncio.sleep(self._barrier_poll_seconds)

    async def _count(self, key: str) -> int:
        response = await self._request("GET", f"/states/{quote(key, safe='')}")
        return self._parse(response, StateCountResponse).count

    async def _publish_outcome(self, report: OutcomeReportMessage) -> None:
        await self._request("POST", "/outcomes", report)

    async def _request(
        self,
        method: str,
        path: str,
        body: SyncModel | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        payload: Any = None
        if body is not None:
            payload = body.model_dump(mode="json", by_alias=True, exclude_none=True)
        try:
            response = await self._client().request(method, url, json=payload)
        except httpx.HTTPError as exc:
            raise CoordinationError(f"{method} {url} failed: {exc}") from exc
        self._raise_for_status(response, method, path)
        return response

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._request_timeout_seconds,
                transport=self._transport,
            )
        return self._http_client

    def _parse(self, response: httpx.Response, model: type[_ResponseModel]) -> _ResponseModel:
        try:
            return model.model_validate(response.json())
        except ValueError as exc:
            raise CoordinationError(
                f"{response.request.method} {response.request.url} returned an "
                f"unexpected body: {exc}"
            ) from exc

    def _raise_for_status(self, response: httpx.Response, method: str, path: str) -> None:
        if response.is_success:
            return
        raise CoordinationError(
            f"collector rejected {method} {path}: HTTP {response.status_code} "
            f"({_describe_rejection(response)})"
        )


def _describe_rejection(response: httpx.Response) -> str:
    """Pick the collector's own explanation out of an error response."""

    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or "empty body"
    if isinstance(payload, dict):
        for key in ("detail", "error", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return json.dumps(payload, sort_keys=True)


def _collector_url(base_url: str) -> str:
    url = base_url.strip().rstrip("/")
    if not url:
        raise CoordinationError("sync_service_url must name the collector endpoint.")
    return url


__all__ = ["HttpSyncClient"]
