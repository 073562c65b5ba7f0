from __future__ import annotations

from upload_gateway.common.config import Settings

TEST_PREFIX = "blender-render/large-video-input/"


def make_settings(**overrides) -> Settings:
    """Settings for tests; metrics are off so apps can be built repeatedly."""
    values = {
        "S3_ACCESS_KEY_ID": "test-access-key",
        "S3_SECRET_ACCESS_KEY": "test-secret-key",
        "S3_BUCKET": "test-bucket",
        "S3_REGION": "ap-northeast-1",
        "S3_KEY_PREFIX": TEST_PREFIX,
        "ENABLE_METRICS": False,
    }
    values.update(overrides)
    return Settings(**values)
