"""aiohttp client for the controller service endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from .conflict import is_conflict_error
from .const import API_PREFIX, DEFAULT_REQUEST_TIMEOUT
from .errors import ApiError, ConflictError

_LOGGER = logging.getLogger(__name__)


def _decode(text: str) -> Any:
    if not text or not text.strip():
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"message": text.strip()}


class ControllerServiceApi:
    """Thin wrapper around the REST endpoints used by the sync workflows.

    Every call raises :class:`ApiError` on failure: with the HTTP status and
    decoded body for error responses, or ``status=None`` when the request
    never got an answer.
    """

    def __init__(
        self,
        base_url: str,
        session: aiohttp.ClientSession | None = None,
        *,
        access_token: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        verify_ssl: bool = True,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._access_token = (access_token or "").strip() or None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._verify_ssl = verify_ssl

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def async_close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def __aenter__(self) -> ControllerServiceApi:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.async_close()

    async def _request(self, method: str, path: str, payload: Mapping[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        kwargs: dict[str, Any] = {"headers": self._headers(), "timeout": self._timeout}
        if payload is not None:
            kwargs["json"] = payload
        if not self._verify_ssl:
            kwargs["ssl"] = False
        session = self._get_session()
        try:
            async with session.request(method, url, **kwargs) as resp:
                text = await resp.text()
                status = resp.status
        except (TimeoutError, aiohttp.ClientError) as err:
            raise ApiError(f"{method} {path} failed: {err}") from err
        except UnicodeDecodeError as err:
            raise ApiError(f"{method} {path} returned an undecodable body: {err}") from err

        data = _decode(text)
        if status >= 400:
            body = data if isinstance(data, Mapping) else {"message": text}
            message = body.get("message") or body.get("error") or f"{method} {path} failed: HTTP {status}"
            raise ApiError(str(message), status=status, data=body)
        return data

    def _service_path(self, service_id: str, *parts: str) -> str:
        path = f"{API_PREFIX}/{service_id}"
        if parts:
            path = "/".join((path, *parts))
        return path

    # ------------------------------------------------------------------
    async def fetch_resource(self, service_id: str) -> dict[str, Any]:
        data = await self._request("GET", self._service_path(service_id))
        return data if isinstance(data, dict) else {}

    async def fetch_references(self, service_id: str) -> dict[str, Any]:
        data = await self._request("GET", self._service_path(service_id, "references"))
        return data if isinstance(data, dict) else {}

    async def _revisioned_put(self, path: str, payload: Mapping[str, Any], action: str) -> Any:
        try:
            return await self._request("PUT", path, payload)
        except ApiError as err:
            # Conflicts are retried by the caller and are not worth a warning
            if is_conflict_error(err):
                raise ConflictError(str(err), status=err.status, data=err.data) from err
            _LOGGER.warning("Failed to %s: %s", action, err)
            raise

    async def mutate_resource(self, service_id: str, payload: Mapping[str, Any]) -> Any:
        return await self._revisioned_put(
            self._service_path(service_id),
            payload,
            f"update controller service {service_id}",
        )

    async def set_run_state(self, service_id: str, payload: Mapping[str, Any]) -> Any:
        return await self._revisioned_put(
            self._service_path(service_id, "run-status"),
            payload,
            f"change run state of {service_id}",
        )

    async def analyze_config(self, service_id: str, properties: Mapping[str, Any] | None = None) -> Any:
        payload = {
            "configurationAnalysis": {
                "componentId": service_id,
                "properties": dict(properties or {}),
            }
        }
        return await self._request("POST", self._service_path(service_id, "config", "analysis"), payload)

    async def create_verification_job(
        self,
        service_id: str,
        properties: Mapping[str, Any] | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> Any:
        payload = {
            "request": {
                "properties": dict(properties or {}),
                "componentId": service_id,
                "attributes": dict(attributes or {}),
            }
        }
        return await self._request(
            "POST",
            self._service_path(service_id, "config", "verification-requests"),
            payload,
        )

    async def fetch_verification_job(self, service_id: str, job_id: str) -> Any:
        return await self._request(
            "GET",
            self._service_path(service_id, "config", "verification-requests", job_id),
        )

    async def delete_verification_job(self, service_id: str, job_id: str) -> Any:
        return await self._request(
            "DELETE",
            self._service_path(service_id, "config", "verification-requests", job_id),
        )


__all__ = ["ControllerServiceApi"]
