"""Revision-aware updates and verification for remote controller services."""

from .api import ControllerServiceApi
from .config import CONFIG_SCHEMA, ControllerSyncConfig
from .conflict import ConflictKind, classify_error, extract_error_message, is_conflict_error
from .editor import ControllerServiceEditor, ReferencingComponent
from .errors import (
    ApiError,
    ConflictError,
    ControllerSyncError,
    RequestIdError,
    ValidationError,
    VerificationDeletedError,
    VerificationTimeoutError,
)
from .jobs import VerificationJob, VerificationResult, format_results, is_complete
from .poller import VerificationPoller
from .request_ids import ArrayWrapped, DirectId, NestedRequest, Unresolved, resolve_request_id
from .revision import Revision, RevisionStore, normalise_version
from .update import RetryOrchestrator, RunStatePayload, UpdatePayload
from .verifier import (
    VerificationRequestManager,
    VerificationSession,
    Verifier,
    cleanup_verification_job,
)

__all__ = [
    "CONFIG_SCHEMA",
    "ApiError",
    "ArrayWrapped",
    "ConflictError",
    "ConflictKind",
    "ControllerServiceApi",
    "ControllerServiceEditor",
    "ReferencingComponent",
    "ControllerSyncConfig",
    "ControllerSyncError",
    "DirectId",
    "NestedRequest",
    "RequestIdError",
    "RetryOrchestrator",
    "Revision",
    "RevisionStore",
    "RunStatePayload",
    "Unresolved",
    "UpdatePayload",
    "ValidationError",
    "VerificationDeletedError",
    "VerificationJob",
    "VerificationPoller",
    "VerificationRequestManager",
    "VerificationResult",
    "VerificationSession",
    "VerificationTimeoutError",
    "Verifier",
    "classify_error",
    "cleanup_verification_job",
    "extract_error_message",
    "format_results",
    "is_complete",
    "is_conflict_error",
    "normalise_version",
    "resolve_request_id",
]
