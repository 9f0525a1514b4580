from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .const import NO_ISSUES_MESSAGE, STATUS_COMPLETE


def _unwrap(payload: Any) -> Any:
    """Return the inner ``request`` object when the job is wrapped in one."""
    if isinstance(payload, Mapping):
        inner = payload.get("request")
        if isinstance(inner, Mapping):
            return inner
    return payload


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """One step reported by a verification job."""

    outcome: str | None = None
    explanation: str | None = None
    step_name: str | None = None
    reason: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> VerificationResult:
        step = payload.get("verificationStepName")
        if step is None:
            step = payload.get("stepName")
        return cls(
            outcome=_optional_text(payload.get("outcome")),
            explanation=_optional_text(payload.get("explanation")),
            step_name=_optional_text(step),
            reason=_optional_text(payload.get("reason")),
        )

    def render(self, index: int) -> str:
        lines = [f"Result {index}:"]
        if self.outcome:
            lines.append(f"Outcome: {self.outcome}")
        if self.explanation:
            lines.append(f"Explanation: {self.explanation}")
        if self.step_name:
            lines.append(f"Step: {self.step_name}")
        if self.reason:
            lines.append(f"Reason: {self.reason}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class VerificationJob:
    """Snapshot of a server-side verification job."""

    id: str | None = None
    complete: Any = False
    status: str | None = None
    results: tuple[VerificationResult, ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> VerificationJob:
        request = _unwrap(payload)
        if not isinstance(request, Mapping):
            return cls(raw={})
        results_raw = request.get("results")
        results: tuple[VerificationResult, ...] = ()
        if isinstance(results_raw, Sequence) and not isinstance(results_raw, str | bytes):
            results = tuple(VerificationResult.from_payload(item) for item in results_raw if isinstance(item, Mapping))
        job_id = request.get("id", request.get("requestId"))
        status = request.get("status")
        return cls(
            id=str(job_id) if job_id is not None else None,
            complete=request.get("complete", False),
            status=str(status) if status is not None else None,
            results=results,
            raw=dict(payload) if isinstance(payload, Mapping) else dict(request),
        )

    @property
    def is_complete(self) -> bool:
        return self.complete is True or self.complete == "true" or self.status == STATUS_COMPLETE


def is_complete(job: VerificationJob | Mapping[str, Any] | None) -> bool:
    """Whether a job is finished.

    ``complete`` may be ``True`` or the string ``"true"``, or the job may
    report ``status == "COMPLETE"``; backends disagree, all three count.
    """
    if job is None:
        return False
    if isinstance(job, VerificationJob):
        return job.is_complete
    request = _unwrap(job)
    if not isinstance(request, Mapping):
        return False
    complete = request.get("complete")
    return complete is True or complete == "true" or request.get("status") == STATUS_COMPLETE


def format_results(job: VerificationJob | Mapping[str, Any] | None) -> str:
    """Render job results for display, one block per result."""

    if job is None:
        return ""
    if not isinstance(job, VerificationJob):
        job = VerificationJob.from_payload(job)
    if not job.results:
        return NO_ISSUES_MESSAGE
    return "\n\n".join(result.render(index) for index, result in enumerate(job.results, start=1))


__all__ = ["VerificationJob", "VerificationResult", "format_results", "is_complete"]
