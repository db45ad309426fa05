"""Tests for the error hierarchy — status codes and REST envelope."""

from skyview.core.errors import (
    DatabaseError,
    ErrorCategory,
    ErrorContext,
    InvalidStateError,
    ResourceExhaustedError,
    ResourceNotFoundError,
    SkyViewError,
    UpstreamUnavailableError,
)


def test_client_input_errors_are_400():
    exc = InvalidStateError("bad ra", "ra")
    assert exc.http_status == 400
    assert exc.category is ErrorCategory.VALIDATION


def test_not_found_envelope():
    exc = ResourceNotFoundError("Viewer state", "abc", ErrorContext(short_id="abc"))
    body = exc.to_response()["error"]
    assert exc.http_status == 404
    assert body["code"] == "RESOURCE_NOT_FOUND"
    assert body["message"] == "Viewer state 'abc' not found"
    assert body["context"]["short_id"] == "abc"


def test_upstream_unavailable_uses_user_message():
    exc = UpstreamUnavailableError("status 502", 10, ErrorContext(survey="VLASS"))
    body = exc.to_response()["error"]
    assert exc.http_status == 503
    assert exc.attempts == 10
    assert "status 502" in exc.message
    assert "temporarily unavailable" in body["message"]
    assert body["context"]["survey"] == "VLASS"


def test_infrastructure_errors_are_503():
    assert ResourceExhaustedError("viewer short ID", 8).http_status == 503
    assert DatabaseError("boom", "commit").http_status == 503


def test_all_errors_share_base():
    for exc in (
        InvalidStateError("x", "ra"),
        ResourceNotFoundError("x", "y"),
        UpstreamUnavailableError("x", 1),
    ):
        assert isinstance(exc, SkyViewError)
