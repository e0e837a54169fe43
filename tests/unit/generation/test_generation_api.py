from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from src.mediagen.config import AppConfig
from src.mediagen.generation.generation_models import GenerationMode, Job, JobStatus
from src.mediagen.generation.submitter import Submission
from src.mediagen.main import create_app
from src.mediagen.providers.providers_base import ProviderError
from tests.mocks.providers import PNG_DATA_URI, ChunkStream, FakeProviderDriver


def build_client(driver: FakeProviderDriver, **config_overrides) -> TestClient:
    config = AppConfig(api_token="r8-test", **config_overrides)
    return TestClient(create_app(config, driver=driver))


def test_sync_image_returns_media_url() -> None:
    driver = FakeProviderDriver(run_output=["https://cdn.example/out2.webp"])
    client = build_client(driver)

    response = client.post("/api/generate/image", json={"prompt": "a red fox"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "mediaUrl": "https://cdn.example/out2.webp"}


def test_sync_stream_returns_data_uri() -> None:
    driver = FakeProviderDriver(run_output=ChunkStream([b"GIF", b"89a"]))
    client = build_client(driver)

    response = client.post("/api/generate/image", json={"prompt": "a red fox"})

    expected = "data:image/webp;base64," + base64.b64encode(b"GIF89a").decode()
    assert response.json()["mediaUrl"] == expected


def test_legacy_image_field_is_accepted() -> None:
    driver = FakeProviderDriver(run_output="https://cdn.example/v.mp4")
    client = build_client(driver)

    response = client.post(
        "/api/generate/video", json={"prompt": "make it move", "image": PNG_DATA_URI}
    )

    assert response.status_code == 200
    assert driver.run_calls[0][1]["image"] == PNG_DATA_URI


def test_missing_image_for_video_is_400_without_remote_call() -> None:
    driver = FakeProviderDriver(run_output="https://cdn.example/v.mp4")
    client = build_client(driver)

    response = client.post("/api/generate/video", json={"prompt": "make it move", "sourceImage": ""})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "invalid_request"
    assert body["error"]
    assert driver.remote_calls == 0


def test_malformed_body_is_400() -> None:
    client = build_client(FakeProviderDriver())

    response = client.post("/api/generate/image", content=b"not json",
                           headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unknown_media_kind_is_rejected() -> None:
    client = build_client(FakeProviderDriver())

    response = client.post("/api/generate/audio", json={"prompt": "hum"})

    assert response.status_code == 400


def test_provider_failure_is_500_with_readable_message() -> None:
    driver = FakeProviderDriver(run_error=ProviderError("secret internal detail"))
    client = build_client(driver)

    response = client.post("/api/generate/image", json={"prompt": "a red fox"})

    assert response.status_code == 500
    body = response.json()
    assert body == {
        "success": False,
        "error": "Failed to generate image",
        "code": "generation_failed",
    }


def test_unrecognized_output_is_500_without_raw_payload() -> None:
    driver = FakeProviderDriver(run_output={"debug": "raw-provider-payload"})
    client = build_client(driver)

    response = client.post("/api/generate/image", json={"prompt": "a red fox"})

    assert response.status_code == 500
    assert response.json()["code"] == "unrecognized_output"
    assert "raw-provider-payload" not in response.text


def test_async_submit_returns_job_id_and_webhook_uses_host() -> None:
    driver = FakeProviderDriver(create_id="p1")
    client = build_client(driver, mode=GenerationMode.ASYNC)

    response = client.post(
        "/api/generate/video",
        json={"prompt": "make it move", "sourceImage": PNG_DATA_URI},
        headers={"Host": "media.example.com"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "jobId": "p1", "status": "starting"}
    assert driver.create_calls[0][2] == "https://media.example.com/api/webhooks/replicate"


def test_status_reports_processing_then_output() -> None:
    driver = FakeProviderDriver()
    driver.script("p1", ("processing", None), ("succeeded", "https://cdn.example/v.mp4"))
    client = build_client(driver, mode=GenerationMode.ASYNC)

    first = client.get("/api/status/p1")
    second = client.get("/api/status/p1")

    assert first.json() == {"status": "processing"}
    assert second.json() == {"status": "succeeded", "output": "https://cdn.example/v.mp4"}


def test_status_with_unreadable_output_reports_failed() -> None:
    driver = FakeProviderDriver()
    driver.script("p1", ("succeeded", {}))
    client = build_client(driver, mode=GenerationMode.ASYNC)

    response = client.get("/api/status/p1")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert "output" not in body
    assert body["error"]


def test_sync_submission_without_output_is_500() -> None:
    class FailedSubmitter:
        async def submit(self, request, *, mode=None, callback_host=None) -> Submission:
            return Submission(
                job=Job(id=None, mode=GenerationMode.SYNC, submitted_at=datetime.now(timezone.utc)),
                status=JobStatus.failed(None, "model returned nothing"),
            )

    client = build_client(FakeProviderDriver())
    client.app.state.job_submitter = FailedSubmitter()

    response = client.post("/api/generate/image", json={"prompt": "a red fox"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to generate image",
        "code": "generation_failed",
    }


def test_rejected_status_lookup_is_500_not_503() -> None:
    driver = FakeProviderDriver(lookup_error=ProviderError("401 Unauthenticated"))
    client = build_client(driver, mode=GenerationMode.ASYNC)

    response = client.get("/api/status/p1")

    assert response.status_code == 500
    assert response.json()["code"] == "generation_failed"
    assert "Unauthenticated" not in response.text

def test_unknown_job_is_404() -> None:
    client = build_client(FakeProviderDriver(), mode=GenerationMode.ASYNC)

    response = client.get("/api/status/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "job_not_found"


def test_webhook_delivery_feeds_status_endpoint() -> None:
    driver = FakeProviderDriver()
    driver.script("p1", ("processing", None))
    client = build_client(driver, mode=GenerationMode.ASYNC)

    ack = client.post(
        "/api/webhooks/replicate",
        json={"jobId": "p1", "status": "completed", "output": ["https://cdn.example/v.mp4"]},
    )
    status = client.get("/api/status/p1")

    assert ack.json() == {"success": True, "status": "succeeded"}
    assert status.json() == {"status": "succeeded", "output": "https://cdn.example/v.mp4"}
    assert driver.get_calls == []


def test_webhook_signature_is_enforced_when_secret_configured() -> None:
    key = b"hook-key"
    secret = "whsec_" + base64.b64encode(key).decode()
    client = build_client(FakeProviderDriver(), mode=GenerationMode.ASYNC, webhook_secret=secret)
    body = json.dumps({"id": "p1", "status": "succeeded", "output": "https://cdn.example/a.webp"})

    unsigned = client.post("/api/webhooks/replicate", content=body)
    assert unsigned.status_code == 401

    timestamp = str(int(time.time()))
    digest = hmac.new(key, f"msg_1.{timestamp}.{body}".encode(), hashlib.sha256).digest()
    signed = client.post(
        "/api/webhooks/replicate",
        content=body,
        headers={
            "webhook-id": "msg_1",
            "webhook-timestamp": timestamp,
            "webhook-signature": "v1," + base64.b64encode(digest).decode(),
        },
    )
    assert signed.status_code == 200
    assert signed.json()["status"] == "succeeded"


def test_invalid_webhook_payload_is_400() -> None:
    client = build_client(FakeProviderDriver(), mode=GenerationMode.ASYNC)

    response = client.post("/api/webhooks/replicate", json={"status": "succeeded"})

    assert response.status_code == 400


def test_health_reports_mode() -> None:
    client = build_client(FakeProviderDriver(), mode=GenerationMode.ASYNC)

    assert client.get("/api/health").json() == {"status": "ok", "mode": "async"}
