from __future__ import annotations

import pytest

from controller_sync.jobs import VerificationJob, VerificationResult, format_results, is_complete


@pytest.mark.parametrize(
    "payload",
    [
        {"complete": True},
        {"complete": "true"},
        {"status": "COMPLETE"},
        {"request": {"complete": True}},
    ],
)
def test_is_complete_truthy_encodings(payload) -> None:
    assert is_complete(payload)
    assert VerificationJob.from_payload(payload).is_complete


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"complete": False},
        {"complete": "false"},
        {"complete": 1},
        {"complete": "TRUE"},
        {"status": "RUNNING"},
        None,
    ],
)
def test_is_complete_false(payload) -> None:
    assert not is_complete(payload)


def test_job_from_wrapped_payload() -> None:
    job = VerificationJob.from_payload(
        {
            "request": {
                "requestId": "job-7",
                "complete": True,
                "results": [
                    {"outcome": "SUCCESSFUL", "verificationStepName": "Connect", "explanation": "ok"},
                    {"outcome": "FAILED", "stepName": "Auth", "reason": "denied"},
                    "junk",
                ],
            }
        }
    )
    assert job.id == "job-7"
    assert job.results == (
        VerificationResult(outcome="SUCCESSFUL", explanation="ok", step_name="Connect"),
        VerificationResult(outcome="FAILED", step_name="Auth", reason="denied"),
    )
    assert job.raw["request"]["requestId"] == "job-7"


def test_format_results() -> None:
    job = VerificationJob.from_payload(
        {
            "results": [
                {
                    "outcome": "FAILED",
                    "explanation": "Unable to connect",
                    "verificationStepName": "Perform Validation",
                    "reason": "timeout",
                },
                {"outcome": "SUCCESSFUL"},
            ]
        }
    )
    assert format_results(job) == (
        "Result 1:\n"
        "Outcome: FAILED\n"
        "Explanation: Unable to connect\n"
        "Step: Perform Validation\n"
        "Reason: timeout\n"
        "\n"
        "Result 2:\n"
        "Outcome: SUCCESSFUL"
    )


def test_format_results_empty_and_missing() -> None:
    assert format_results({"complete": True, "results": []}) == "Verification completed with no issues."
    assert format_results(None) == ""
