from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any

import pytest

from controller_sync.errors import ApiError
from controller_sync.utils.logging import reset_warnings

SERVICE_ID = "svc-1"


def conflict(message: str = "Conflict") -> ApiError:
    return ApiError(message, status=409, data={"message": message})


def not_found() -> ApiError:
    return ApiError("Not Found", status=404, data={"message": "Not Found"})


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeBackend:
    """In-memory controller service backend with scripted outcomes.

    ``mutate_results``, ``run_state_results`` and ``job_responses`` are
    consumed in order; an exception instance is raised, anything else is
    returned. When ``job_responses`` runs dry ``job_default`` is used.
    """

    def __init__(self) -> None:
        self.resource: dict[str, Any] = {
            "revision": {"version": 3, "clientId": "server-client"},
            "component": {
                "id": SERVICE_ID,
                "name": "Azure Credentials",
                "state": "DISABLED",
                "bulletinLevel": "WARN",
                "comments": "initial",
                "properties": {
                    "storage-account": {"value": "acct"},
                    "endpoint-suffix": "dfs.core.windows.net",
                    "account-key": {"value": None},
                    "nifi.framework": {"value": "x"},
                },
                "descriptors": {
                    "storage-account": {"sensitive": False},
                    "endpoint-suffix": {"sensitive": False},
                    "account-key": {"sensitive": True},
                    "nifi.framework": {"sensitive": False},
                },
            },
        }
        self.mutate_results: list[Any] = []
        self.run_state_results: list[Any] = []
        self.create_response: Any = {"request": {"requestId": "job-1", "complete": False}}
        self.job_responses: list[Any] = []
        self.job_default: Any = {"request": {"requestId": "job-1", "complete": True, "results": []}}
        self.references: dict[str, Any] = {"controllerServiceReferencingComponents": []}
        self.fetch_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.calls: dict[str, list[tuple]] = defaultdict(list)

    def _next(self, queue: list[Any], default: Any) -> Any:
        outcome = queue.pop(0) if queue else default
        if isinstance(outcome, BaseException):
            raise outcome
        return copy.deepcopy(outcome)

    async def fetch_resource(self, resource_id: str) -> dict[str, Any]:
        self.calls["fetch_resource"].append((resource_id,))
        if self.fetch_error is not None:
            raise self.fetch_error
        return copy.deepcopy(self.resource)

    async def fetch_references(self, resource_id: str) -> dict[str, Any]:
        self.calls["fetch_references"].append((resource_id,))
        return copy.deepcopy(self.references)

    async def mutate_resource(self, resource_id: str, payload: dict[str, Any]) -> Any:
        self.calls["mutate_resource"].append((resource_id, copy.deepcopy(payload)))
        default = {"revision": {"version": payload["revision"]["version"] + 1}, "component": payload["component"]}
        return self._next(self.mutate_results, default)

    async def set_run_state(self, resource_id: str, payload: dict[str, Any]) -> Any:
        self.calls["set_run_state"].append((resource_id, copy.deepcopy(payload)))
        component = {**self.resource["component"], "state": payload["state"]}
        return self._next(self.run_state_results, {"component": component})

    async def analyze_config(self, resource_id: str, properties: dict[str, Any] | None = None) -> Any:
        self.calls["analyze_config"].append((resource_id, properties))
        return {"configurationAnalysis": {"componentId": resource_id}}

    async def create_verification_job(
        self,
        resource_id: str,
        properties: dict[str, Any] | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> Any:
        self.calls["create_verification_job"].append((resource_id, properties, attributes))
        if isinstance(self.create_response, BaseException):
            raise self.create_response
        return copy.deepcopy(self.create_response)

    async def fetch_verification_job(self, resource_id: str, job_id: str) -> Any:
        self.calls["fetch_verification_job"].append((resource_id, job_id))
        return self._next(self.job_responses, self.job_default)

    async def delete_verification_job(self, resource_id: str, job_id: str) -> Any:
        self.calls["delete_verification_job"].append((resource_id, job_id))
        if self.delete_error is not None:
            raise self.delete_error
        return {}


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _clear_warn_once():
    reset_warnings()
    yield
    reset_warnings()
