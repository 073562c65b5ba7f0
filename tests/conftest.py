from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("S3_ACCESS_KEY_ID", "test-access-key")
os.environ.setdefault("S3_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("S3_BUCKET", "test-bucket")
os.environ.setdefault("S3_REGION", "ap-northeast-1")

from upload_gateway.common.config import Settings, get_settings  # noqa: E402
from upload_gateway.main import create_app  # noqa: E402
from tests.services.mock_storage import MockStorageClient  # noqa: E402
from tests.settings_factory import make_settings  # noqa: E402

get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient(bucket="test-bucket")


@pytest.fixture
def client(settings, storage) -> TestClient:
    app = create_app(settings=settings, storage_client=storage)
    return TestClient(app)
