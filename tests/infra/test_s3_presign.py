"""Presigning against a real boto3 client.

SigV4 presigning is computed locally from the held credentials, so these
tests need no network and no S3 endpoint.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from tests.settings_factory import make_settings
from upload_gateway.infra.storage.s3_client import S3StorageClient


@pytest.fixture
def client() -> S3StorageClient:
    return S3StorageClient(settings=make_settings())


def _query(url: str) -> dict[str, list[str]]:
    return parse_qs(urlparse(url).query)


def test_presigned_url_addresses_the_part(client):
    url = client.presign_upload_part(
        object_key="blender-render/large-video-input/movie.mp4",
        upload_id="U1",
        part_number=1,
    )

    parsed = urlparse(url)
    query = _query(url)
    assert parsed.path.endswith("/test-bucket/blender-render/large-video-input/movie.mp4")
    assert query["uploadId"] == ["U1"]
    assert query["partNumber"] == ["1"]
    assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert query["X-Amz-Credential"][0].startswith("test-access-key/")
    assert "X-Amz-Signature" in query


def test_presigned_urls_differ_per_part_number(client):
    urls = {
        client.presign_upload_part(
            object_key="blender-render/large-video-input/movie.mp4",
            upload_id="U1",
            part_number=number,
        )
        for number in (1, 2, 3)
    }

    assert len(urls) == 3


def test_presigned_url_expiry_override(client):
    url = client.presign_upload_part(
        object_key="k", upload_id="U1", part_number=1, expires_in=900
    )

    assert _query(url)["X-Amz-Expires"] == ["900"]


def test_custom_endpoint_is_used_for_signing():
    client = S3StorageClient(
        settings=make_settings(S3_ENDPOINT_URL="http://minio.local:9000", S3_USE_SSL=False)
    )

    url = client.presign_upload_part(object_key="k", upload_id="U1", part_number=7)

    assert url.startswith("http://minio.local:9000/test-bucket/k?")
