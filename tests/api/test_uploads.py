"""HTTP-level tests for the multipart upload endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.settings_factory import TEST_PREFIX, make_settings
from upload_gateway.infra.storage.client import StorageAuthError
from upload_gateway.main import create_app


def _start(client: TestClient, key: str) -> str:
    r = client.post("/upload/start", params={"key": key})
    assert r.status_code == 200
    body = r.json()
    assert body["key"] == key
    return body["uploadId"]


def test_complete_flow_for_movie(client, storage):
    upload_id = _start(client, "movie.mp4")

    r = client.post(
        "/upload/presign",
        params={"key": "movie.mp4", "uploadId": upload_id, "partNumber": "1"},
    )
    assert r.status_code == 200
    presign_url = r.json()["presignUrl"]
    assert f"{TEST_PREFIX}movie.mp4" in presign_url

    # the client PUTs the bytes straight to storage and keeps the ETag
    etag = storage.put_part(upload_id, 1)

    r = client.post(
        "/upload/complete",
        json={
            "key": "movie.mp4",
            "uploadId": upload_id,
            "completedParts": [{"partNumber": 1, "etag": etag}],
        },
    )
    assert r.status_code == 200
    assert r.json() == {"message": "upload completed"}
    assert f"{TEST_PREFIX}movie.mp4" in storage.objects


def test_start_response_never_leaks_prefix(client):
    r = client.post("/upload/start", params={"key": "movie.mp4"})

    assert r.status_code == 200
    assert set(r.json()) == {"uploadId", "key"}
    assert TEST_PREFIX not in r.text


def test_start_requires_key(client, storage):
    r = client.post("/upload/start")

    assert r.status_code == 400
    assert r.json() == {"error": "missing key"}
    assert storage.calls == []


def test_presign_urls_differ_per_part(client):
    upload_id = _start(client, "movie.mp4")

    urls = {
        client.post(
            "/upload/presign",
            params={"key": "movie.mp4", "uploadId": upload_id, "partNumber": n},
        ).json()["presignUrl"]
        for n in (1, 2)
    }

    assert len(urls) == 2


def test_presign_missing_params(client, storage):
    r = client.post("/upload/presign", params={"key": "movie.mp4", "partNumber": "1"})

    assert r.status_code == 400
    assert r.json() == {"error": "missing params"}
    assert storage.calls == []


def test_presign_invalid_part_number(client, storage):
    for value in ("abc", "0", "-2", "10001"):
        r = client.post(
            "/upload/presign",
            params={"key": "movie.mp4", "uploadId": "U1", "partNumber": value},
        )
        assert r.status_code == 400
        assert r.json() == {"error": "invalid partNumber"}
    assert storage.calls == []


def test_abort_flow_then_presign_fails_when_verified(storage):
    client = TestClient(
        create_app(
            settings=make_settings(VERIFY_UPLOAD_ON_PRESIGN=True),
            storage_client=storage,
        )
    )
    upload_id = _start(client, "abort-me.bin")

    r = client.post("/upload/abort", json={"key": "abort-me.bin", "uploadId": upload_id})
    assert r.status_code == 200
    assert r.json() == {"message": "upload aborted"}

    r = client.post(
        "/upload/presign",
        params={"key": "abort-me.bin", "uploadId": upload_id, "partNumber": "1"},
    )
    assert r.status_code == 500
    assert "NoSuchUpload" in r.json()["error"]


def test_double_abort_surfaces_backend_error(client, storage):
    upload_id = _start(client, "abort-me.bin")
    body = {"key": "abort-me.bin", "uploadId": upload_id}

    assert client.post("/upload/abort", json=body).status_code == 200
    r = client.post("/upload/abort", json=body)

    assert r.status_code == 500
    assert set(r.json()) == {"error"}
    assert "Failed to abort multipart upload" in r.json()["error"]
    assert len(storage.backend_calls("abort_multipart_upload")) == 2


def test_complete_without_upload_id_is_rejected_locally(client, storage):
    r = client.post(
        "/upload/complete",
        json={"key": "movie.mp4", "completedParts": [{"partNumber": 1, "etag": "e"}]},
    )

    assert r.status_code == 400
    assert r.json() == {"error": "key or uploadId missing"}
    assert storage.calls == []


def test_complete_with_malformed_body(client, storage):
    r = client.post(
        "/upload/complete",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "invalid request body"}

    r = client.post(
        "/upload/complete",
        json={"key": "movie.mp4", "uploadId": "U1", "completedParts": [{"partNumber": "x"}]},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "invalid request body"}
    assert storage.calls == []


def test_complete_accepts_sdk_field_names(client, storage):
    upload_id = _start(client, "movie.mp4")
    etag = storage.put_part(upload_id, 1)

    r = client.post(
        "/upload/complete",
        json={
            "key": "movie.mp4",
            "uploadId": upload_id,
            "completedParts": [
                {"PartNumber": 1, "ETag": etag, "ChecksumCRC32": None},
            ],
        },
    )

    assert r.status_code == 200
    forwarded = storage.backend_calls("complete_multipart_upload")[0]["parts"]
    assert [(p.part_number, p.etag) for p in forwarded] == [(1, etag)]


def test_complete_surfaces_manifest_rejection(client, storage):
    upload_id = _start(client, "movie.mp4")
    storage.put_part(upload_id, 1)
    storage.put_part(upload_id, 2)

    r = client.post(
        "/upload/complete",
        json={
            "key": "movie.mp4",
            "uploadId": upload_id,
            "completedParts": [
                {"partNumber": 2, "etag": "b"},
                {"partNumber": 1, "etag": "a"},
            ],
        },
    )

    assert r.status_code == 500
    assert "InvalidPartOrder" in r.json()["error"]


def test_abort_without_key(client, storage):
    r = client.post("/upload/abort", json={"uploadId": "U1"})

    assert r.status_code == 400
    assert r.json() == {"error": "key or uploadId missing"}
    assert storage.calls == []


def test_list_parts(client, storage):
    upload_id = _start(client, "movie.mp4")
    etag = storage.put_part(upload_id, 1)

    r = client.get("/upload/parts", params={"key": "movie.mp4", "uploadId": upload_id})

    assert r.status_code == 200
    assert r.json() == {
        "key": "movie.mp4",
        "uploadId": upload_id,
        "parts": [{"partNumber": 1, "etag": etag}],
    }


def test_storage_auth_failure_is_a_server_error(settings):
    class RejectingStorage:
        def create_multipart_upload(self, *, object_key):
            raise StorageAuthError(
                "Failed to create multipart upload: An error occurred (InvalidAccessKeyId)"
            )

    client = TestClient(create_app(settings=settings, storage_client=RejectingStorage()))

    r = client.post("/upload/start", params={"key": "movie.mp4"})

    assert r.status_code == 500
    assert r.json() == {
        "error": "Failed to create multipart upload: An error occurred (InvalidAccessKeyId)"
    }


def test_authorization_header_required_when_enabled(storage):
    client = TestClient(
        create_app(
            settings=make_settings(AUTH_HEADER_REQUIRED=True), storage_client=storage
        )
    )

    r = client.post("/upload/start", params={"key": "movie.mp4"})
    assert r.status_code == 401
    assert r.json() == {"error": "no token"}
    assert storage.calls == []

    r = client.post(
        "/upload/start",
        params={"key": "movie.mp4"},
        headers={"Authorization": "Bearer anything"},
    )
    assert r.status_code == 200
