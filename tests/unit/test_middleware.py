"""Tests for error-to-response mapping."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from jingler.api.middleware import _get_status_code, _is_retryable, jingler_error_handler
from jingler.models.errors import (
    ConfigurationError,
    ForbiddenError,
    JinglerError,
    MixEngineError,
    NotFoundError,
    PayloadTooLarge,
    QuotaExceeded,
    TagVerifyError,
    UnsupportedFormat,
    UpstreamError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ValidationError("bad"), 400),
        (QuotaExceeded("limit"), 403),
        (ForbiddenError("mine"), 403),
        (NotFoundError("gone"), 404),
        (PayloadTooLarge("big"), 413),
        (UnsupportedFormat("txt"), 415),
        (ConfigurationError("no creds"), 503),
        (UpstreamError("down"), 502),
        (MixEngineError("ffmpeg"), 500),
        (TagVerifyError("no image"), 500),
        (JinglerError("other"), 500),
    ],
)
def test_status_codes(exc, status):
    assert _get_status_code(exc) == status


def test_only_upstream_is_retryable():
    assert _is_retryable(UpstreamError("down"))
    assert not _is_retryable(ConfigurationError("no creds"))
    assert not _is_retryable(QuotaExceeded("limit"))


def test_handler_renders_error_response():
    app = FastAPI()
    app.add_exception_handler(JinglerError, jingler_error_handler)

    @app.get("/boom")
    def boom():
        raise QuotaExceeded(
            "Free tier limit: Maximum 5 mixes per day. Upgrade to PRO for unlimited mixing.",
            details={"capability": "can_mix"},
        )

    response = TestClient(app).get("/boom")

    assert response.status_code == 403
    body = response.json()
    assert body["error_type"] == "QuotaExceeded"
    assert body["component"] == "quota"
    assert body["message"].startswith("Free tier limit")
    assert body["details"] == {"capability": "can_mix"}
    assert body["retry_possible"] is False
