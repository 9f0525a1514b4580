"""Edit, enable/disable and verify a single controller service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import aiohttp

from .api import ControllerServiceApi
from .conflict import extract_error_message
from .config import ControllerSyncConfig
from .const import (
    BULLETIN_LEVELS,
    BULLETIN_LEVEL_NONE,
    DEFAULT_BULLETIN_LEVEL,
    FRAMEWORK_PROPERTY_PREFIX,
    STATE_DISABLED,
    STATE_ENABLED,
    UPDATE_FAILED_MESSAGE,
    VERIFY_FAILED_MESSAGE,
)
from .errors import ValidationError
from .jobs import VerificationJob, format_results
from .poller import Sleep, VerificationPoller
from .revision import Revision, RevisionStore
from .update import RetryOrchestrator, RunStatePayload, UpdatePayload
from .verifier import VerificationSession, Verifier

_LOGGER = logging.getLogger(__name__)


def normalise_properties(raw: Any) -> dict[str, str]:
    """Flatten ``{key: {"value": v}}`` or ``{key: v}`` into ``{key: str}``."""

    if not isinstance(raw, Mapping):
        return {}
    props: dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, Mapping):
            value = value.get("value")
        props[str(key)] = "" if value is None else str(value)
    return props


def editable_property_names(descriptors: Any) -> list[str]:
    """Descriptors a user may change: not sensitive, not framework owned."""

    if not isinstance(descriptors, Mapping):
        return []
    names: list[str] = []
    for key, descriptor in descriptors.items():
        if str(key).startswith(FRAMEWORK_PROPERTY_PREFIX):
            continue
        if isinstance(descriptor, Mapping) and descriptor.get("sensitive"):
            continue
        names.append(str(key))
    return names


@dataclass(frozen=True, slots=True)
class ReferencingComponent:
    """A component that uses the controller service."""

    id: str
    name: str
    type: str | None = None
    state: str | None = None
    group_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ReferencingComponent:
        component = payload.get("component")
        if not isinstance(component, Mapping):
            component = payload
        ref_id = str(component.get("id") or payload.get("id") or "")
        return cls(
            id=ref_id,
            name=str(component.get("name") or ref_id),
            type=component.get("referenceType") or component.get("type"),
            state=component.get("state"),
            group_id=component.get("groupId"),
        )


class ControllerServiceEditor:
    """State behind the edit drawer of one controller service.

    ``apply_update`` and ``set_enabled`` report success as a boolean and
    keep the message of a failure in ``last_update_error``; verification
    state is exposed through ``is_verifying``, ``last_verification_result``
    and ``last_verification_error``.
    """

    def __init__(
        self,
        api: ControllerServiceApi,
        service_id: str,
        *,
        name: str | None = None,
        config: ControllerSyncConfig | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.api = api
        self.service_id = service_id
        self.config = config or ControllerSyncConfig()
        self._known_name = name or ""
        self.store = RevisionStore(api.fetch_resource)
        self.orchestrator = RetryOrchestrator(
            api.mutate_resource,
            self.store,
            sleep=sleep,
            **self.config.retry_kwargs(),
        )
        poller = VerificationPoller(api.fetch_verification_job, sleep=sleep, **self.config.poll_kwargs())
        self.verifier = Verifier(api, poller)
        self.session = VerificationSession()
        self._owns_api = False

        self.details: dict[str, Any] = {}
        self.bulletin_level: str | None = DEFAULT_BULLETIN_LEVEL
        self.comments = ""
        self.properties: dict[str, str] = {}
        self.state: str | None = None
        self.last_update_error: str | None = None

    @classmethod
    def from_config(
        cls,
        config: ControllerSyncConfig,
        service_id: str,
        *,
        session: aiohttp.ClientSession | None = None,
        name: str | None = None,
    ) -> ControllerServiceEditor:
        if not config.ready:
            raise ValidationError("base_url is required")
        api = ControllerServiceApi(
            config.base_url,
            session,
            access_token=config.access_token,
            timeout=config.request_timeout,
            verify_ssl=config.verify_ssl,
        )
        editor = cls(api, service_id, name=name, config=config)
        editor._owns_api = True
        return editor

    async def async_close(self) -> None:
        if self._owns_api:
            await self.api.async_close()

    # ------------------------------------------------------------------
    @property
    def component(self) -> Mapping[str, Any]:
        component = self.details.get("component")
        return component if isinstance(component, Mapping) else {}

    @property
    def name(self) -> str:
        return str(self.component.get("name") or self._known_name or "")

    @property
    def editable_properties(self) -> list[str]:
        return editable_property_names(self.component.get("descriptors"))

    @property
    def can_verify(self) -> bool:
        return bool(self.editable_properties)

    def _absorb(self, details: Mapping[str, Any]) -> None:
        self.details = dict(details)
        component = self.component
        self.bulletin_level = str(component.get("bulletinLevel") or DEFAULT_BULLETIN_LEVEL)
        self.comments = str(component.get("comments") or "")
        self.properties = normalise_properties(component.get("properties"))
        state = component.get("state")
        self.state = str(state) if state else None

    async def async_load(self) -> dict[str, Any]:
        """Fetch the service and populate the editable fields."""

        details = await self.api.fetch_resource(self.service_id)
        self._absorb(details)
        return self.details

    # ------------------------------------------------------------------
    def build_payload(
        self,
        latest: Mapping[str, Any],
        revision: Revision,
        *,
        bulletin_level: str | None = None,
        comments: str | None = None,
        properties: Mapping[str, str] | None = None,
    ) -> UpdatePayload:
        """Build the update from the latest server copy plus local edits.

        ``properties`` is only sent when given, limited to editable
        descriptors, with unchanged keys keeping the server value.
        """
        component_raw = latest.get("component") if isinstance(latest, Mapping) else None
        current = component_raw if isinstance(component_raw, Mapping) else {}
        name = str(current.get("name") or self._known_name or "").strip()
        if not name:
            raise ValidationError("Service name is required but not available")

        level = bulletin_level if bulletin_level is not None else (self.bulletin_level or BULLETIN_LEVEL_NONE)
        if level not in BULLETIN_LEVELS:
            raise ValidationError(f"Unsupported bulletin level: {level}")

        component: dict[str, Any] = {
            "id": self.service_id,
            "name": name,
            "bulletinLevel": level,
            "comments": comments if comments is not None else self.comments,
        }

        if properties is not None:
            server_values = normalise_properties(current.get("properties"))
            formatted = {
                key: {"value": properties.get(key, server_values.get(key, ""))}
                for key in editable_property_names(current.get("descriptors"))
            }
            if formatted:
                component["properties"] = formatted

        return UpdatePayload(revision=revision, component=component)

    async def apply_update(
        self,
        *,
        bulletin_level: str | None = None,
        comments: str | None = None,
        properties: Mapping[str, str] | None = None,
    ) -> bool:
        """Save local edits; retries revision conflicts transparently."""

        self.last_update_error = None
        try:
            revision = await self.store.refresh(self.service_id)
            latest = self.store.details(self.service_id) or {}
            payload = self.build_payload(
                latest,
                revision,
                bulletin_level=bulletin_level,
                comments=comments,
                properties=properties,
            )
            response = await self.orchestrator.apply_update(payload, resource_id=self.service_id)
        except Exception as err:
            self.last_update_error = extract_error_message(err, UPDATE_FAILED_MESSAGE)
            _LOGGER.error("Failed to update controller service %s: %s", self.service_id, self.last_update_error)
            return False

        if isinstance(response, Mapping) and isinstance(response.get("component"), Mapping):
            self._absorb(response)
        else:
            self._absorb({**latest, "component": {**(latest.get("component") or {}), **payload.component}})
        return True

    async def set_enabled(self, enabled: bool) -> bool:
        """Enable or disable the service through the same conflict-retry loop."""

        state = STATE_ENABLED if enabled else STATE_DISABLED
        self.last_update_error = None
        try:
            revision = await self.store.refresh(self.service_id)
            payload = RunStatePayload(revision=revision, service_id=self.service_id, state=state)
            response = await self.orchestrator.apply_update(
                payload,
                resource_id=self.service_id,
                mutate=self.api.set_run_state,
            )
        except Exception as err:
            action = "enable" if enabled else "disable"
            self.last_update_error = extract_error_message(err, f"Failed to {action} controller service")
            _LOGGER.error("Failed to %s controller service %s: %s", action, self.service_id, self.last_update_error)
            return False

        if isinstance(response, Mapping) and isinstance(response.get("component"), Mapping):
            self._absorb(response)
        else:
            self.state = state
        return True

    async def async_references(self) -> list[ReferencingComponent]:
        """Components that would be affected by disabling the service."""

        data = await self.api.fetch_references(self.service_id)
        refs = data.get("controllerServiceReferencingComponents")
        if not isinstance(refs, list):
            return []
        return [ReferencingComponent.from_payload(ref) for ref in refs if isinstance(ref, Mapping)]

    # ------------------------------------------------------------------
    @property
    def is_verifying(self) -> bool:
        return self.session.is_verifying

    @property
    def last_verification_result(self) -> VerificationJob | None:
        return self.session.result

    @property
    def last_verification_error(self) -> str | None:
        return self.session.last_error

    async def start_verification(self) -> VerificationJob | None:
        """Verify the service; a call made while one is running does nothing."""

        try:
            return await self.verifier.run(self.service_id, self.session)
        except Exception as err:
            if not self.session.last_error:
                self.session.last_error = extract_error_message(err, VERIFY_FAILED_MESSAGE)
            _LOGGER.error("Failed to verify controller service %s: %s", self.service_id, err)
            return None

    def format_verification_results(self) -> str:
        return format_results(self.session.result)

    def reset(self) -> None:
        """Drop transient state, as when the drawer closes."""

        self.session.reset()
        self.store.forget(self.service_id)
        self.last_update_error = None

    def status(self) -> dict[str, Any]:
        revision = self.store.get(self.service_id)
        return {
            "service_id": self.service_id,
            "name": self.name,
            "state": self.state,
            "revision": revision.to_dict() if revision else None,
            "last_update_attempts": self.orchestrator.last_attempts,
            "last_update_error": self.last_update_error,
            "verifying": self.session.is_verifying,
            "verification_job_id": self.session.job_id,
            "verification_complete": bool(self.session.result and self.session.result.is_complete),
            "verification_error": self.session.last_error,
        }


__all__ = ["ControllerServiceEditor", "ReferencingComponent", "editable_property_names", "normalise_properties"]
