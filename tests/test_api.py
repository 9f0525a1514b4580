from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from controller_sync.api import ControllerServiceApi
from controller_sync.errors import ApiError, ConflictError

BASE = "https://nifi.example:8443/"


def make_response(status: int, body: object = None) -> AsyncMock:
    resp = AsyncMock()
    resp.__aenter__.return_value = resp
    resp.__aexit__.return_value = None
    resp.status = status
    text = body if isinstance(body, str) else ("" if body is None else json.dumps(body))
    resp.text = AsyncMock(return_value=text)
    return resp


def make_api(*responses: AsyncMock, **kwargs) -> tuple[ControllerServiceApi, MagicMock]:
    session = MagicMock()
    session.request.side_effect = list(responses)
    return ControllerServiceApi(BASE, session, **kwargs), session


@pytest.mark.asyncio
async def test_fetch_resource_builds_url_and_headers() -> None:
    api, session = make_api(make_response(200, {"revision": {"version": 2}}), access_token="tok")

    data = await api.fetch_resource("svc-1")

    assert data == {"revision": {"version": 2}}
    method, url = session.request.call_args.args
    assert method == "GET"
    assert url == "https://nifi.example:8443/nifi-api/controller-services/svc-1"
    kwargs = session.request.call_args.kwargs
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert "json" not in kwargs


@pytest.mark.asyncio
async def test_verification_endpoints() -> None:
    api, session = make_api(
        make_response(200, {"configurationAnalysis": {}}),
        make_response(200, {"request": {"requestId": "r-1"}}),
        make_response(200, {"request": {"complete": True}}),
        make_response(200, ""),
    )

    await api.analyze_config("svc-1", {})
    created = await api.create_verification_job("svc-1", {}, {"a": "b"})
    fetched = await api.fetch_verification_job("svc-1", "r-1")
    deleted = await api.delete_verification_job("svc-1", "r-1")

    calls = session.request.call_args_list
    assert [call.args[0] for call in calls] == ["POST", "POST", "GET", "DELETE"]
    assert calls[0].args[1].endswith("/controller-services/svc-1/config/analysis")
    assert calls[0].kwargs["json"] == {"configurationAnalysis": {"componentId": "svc-1", "properties": {}}}
    assert calls[1].args[1].endswith("/controller-services/svc-1/config/verification-requests")
    assert calls[1].kwargs["json"] == {
        "request": {"properties": {}, "componentId": "svc-1", "attributes": {"a": "b"}}
    }
    assert calls[2].args[1].endswith("/config/verification-requests/r-1")
    assert created == {"request": {"requestId": "r-1"}}
    assert fetched == {"request": {"complete": True}}
    assert deleted == {}


@pytest.mark.asyncio
async def test_error_status_raises_api_error_with_body() -> None:
    api, _ = make_api(make_response(404, {"message": "Unable to find verification request"}))

    with pytest.raises(ApiError) as excinfo:
        await api.fetch_verification_job("svc-1", "r-1")

    assert excinfo.value.status == 404
    assert excinfo.value.data == {"message": "Unable to find verification request"}
    assert str(excinfo.value) == "Unable to find verification request"


@pytest.mark.asyncio
async def test_plain_text_error_body() -> None:
    api, _ = make_api(make_response(400, "Invalid property value"))

    with pytest.raises(ApiError, match="Invalid property value") as excinfo:
        await api.mutate_resource("svc-1", {"revision": {"version": 1}})

    assert not isinstance(excinfo.value, ConflictError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "body"),
    [
        (409, "svc-1 is not the most up-to-date revision"),
        (500, {"details": "Request failed with status 409"}),
    ],
)
async def test_conflicts_become_conflict_error(status, body) -> None:
    api, _ = make_api(make_response(status, body))

    with pytest.raises(ConflictError) as excinfo:
        await api.mutate_resource("svc-1", {"revision": {"version": 1}})

    assert excinfo.value.status == status


@pytest.mark.asyncio
async def test_run_state_endpoint() -> None:
    api, session = make_api(make_response(200, {"component": {"state": "ENABLED"}}))

    data = await api.set_run_state("svc-1", {"state": "ENABLED"})

    assert data["component"]["state"] == "ENABLED"
    method, url = session.request.call_args.args
    assert method == "PUT"
    assert url.endswith("/controller-services/svc-1/run-status")


@pytest.mark.asyncio
async def test_transport_errors_are_wrapped() -> None:
    session = MagicMock()
    session.request.side_effect = aiohttp.ClientError("connection refused")
    api = ControllerServiceApi(BASE, session)

    with pytest.raises(ApiError) as excinfo:
        await api.fetch_resource("svc-1")

    assert excinfo.value.status is None
    assert excinfo.value.reason == "transport_error"


@pytest.mark.asyncio
async def test_insecure_disables_ssl() -> None:
    api, session = make_api(make_response(200, {}), verify_ssl=False)

    await api.fetch_references("svc-1")

    assert session.request.call_args.kwargs["ssl"] is False
    assert session.request.call_args.args[1].endswith("/svc-1/references")


@pytest.mark.asyncio
async def test_close_only_owned_session() -> None:
    session = MagicMock()
    session.close = AsyncMock()
    api = ControllerServiceApi(BASE, session)
    await api.async_close()
    session.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_undecodable_body_is_wrapped() -> None:
    resp = make_response(200)
    resp.text = AsyncMock(side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
    api, _ = make_api(resp)

    with pytest.raises(ApiError, match="undecodable body") as excinfo:
        await api.fetch_verification_job("svc-1", "r-1")

    assert excinfo.value.status is None
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
