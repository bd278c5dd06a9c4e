"""
Unit Tests — S3ObjectStore
══════════════════════════
Tests for tenant_ingest/storage/s3.py

Coverage:
  ✅ Object key layout: <tenant>/<YYYY>/<MM>/<DD>/<uuid4><ext>
  ✅ Keys are unique per call
  ✅ URL scheme for MinIO-style endpoints and for AWS
  ✅ put_object sends bucket, key, body, content type
  ✅ ClientError / BotoCoreError → InfrastructureError
  ✅ ensure_bucket: no-op when present, creates on 404, fails on 403
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from tenant_ingest.core.errors import InfrastructureError
from tenant_ingest.storage.s3 import S3ObjectStore, build_object_key


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "test"}}, "operation")


def _build_s3_mock() -> AsyncMock:
    """Build a mock S3 client context manager."""
    s3 = AsyncMock()
    s3.__aenter__ = AsyncMock(return_value=s3)
    s3.__aexit__  = AsyncMock(return_value=None)
    s3.put_object    = AsyncMock(return_value={"ETag": '"etag-123"'})
    s3.head_bucket   = AsyncMock(return_value={})
    s3.create_bucket = AsyncMock(return_value={})
    return s3


def _store(s3, endpoint: str = "http://minio:9000", region: str = "us-east-1") -> S3ObjectStore:
    store = S3ObjectStore(bucket="pdf-uploads", region=region, endpoint_url=endpoint)
    store._client = lambda: s3
    return store


# ─────────────────────────────────────────────────────────────────────────────
# Keys and URLs
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
class TestObjectKeys:

    def test_key_layout(self):
        key = build_object_key("acme", datetime(2024, 3, 7, tzinfo=timezone.utc), ".pdf")

        tenant, yyyy, mm, dd, name = key.split("/")
        assert (tenant, yyyy, mm, dd) == ("acme", "2024", "03", "07")
        assert name.endswith(".pdf")
        assert uuid.UUID(name[:-4]).version == 4

    def test_extension_kept_verbatim(self):
        key = build_object_key("acme", datetime(2024, 1, 1, tzinfo=timezone.utc), ".PDF")
        assert key.endswith(".PDF")

    def test_keys_are_unique(self):
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        keys = {build_object_key("acme", at, ".pdf") for _ in range(100)}
        assert len(keys) == 100

    def test_url_for_minio_endpoint(self):
        store = S3ObjectStore(bucket="pdf-uploads", endpoint_url="http://localhost:9000/")
        assert store.object_url("acme/2024/01/01/x.pdf") == "http://localhost:9000/pdf-uploads/acme/2024/01/01/x.pdf"

    def test_url_for_aws(self):
        store = S3ObjectStore(bucket="pdf-uploads", region="eu-west-1", endpoint_url="")
        assert store.object_url("k.pdf") == "https://pdf-uploads.s3.eu-west-1.amazonaws.com/k.pdf"


# ─────────────────────────────────────────────────────────────────────────────
# put_object
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
class TestPutObject:

    async def test_put_returns_path_and_url(self):
        s3 = _build_s3_mock()

        stored = await _store(s3).put_object("acme/2024/01/01/a.pdf", b"%PDF-1.4")

        s3.put_object.assert_awaited_once_with(
            Bucket="pdf-uploads",
            Key="acme/2024/01/01/a.pdf",
            Body=b"%PDF-1.4",
            ContentType="application/pdf",
        )
        assert stored.path == "acme/2024/01/01/a.pdf"
        assert stored.url == "http://minio:9000/pdf-uploads/acme/2024/01/01/a.pdf"

    async def test_client_error_becomes_infrastructure_error(self):
        s3 = _build_s3_mock()
        s3.put_object.side_effect = _client_error("AccessDenied")

        with pytest.raises(InfrastructureError) as exc_info:
            await _store(s3).put_object("k.pdf", b"x")

        assert exc_info.value.message == "unable to upload file"
        assert isinstance(exc_info.value.__cause__, ClientError)

    async def test_connection_error_becomes_infrastructure_error(self):
        s3 = _build_s3_mock()
        s3.put_object.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")

        with pytest.raises(InfrastructureError):
            await _store(s3).put_object("k.pdf", b"x")


# ─────────────────────────────────────────────────────────────────────────────
# ensure_bucket
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.unit
class TestEnsureBucket:

    async def test_existing_bucket_is_left_alone(self):
        s3 = _build_s3_mock()

        await _store(s3).ensure_bucket()

        s3.create_bucket.assert_not_awaited()

    async def test_missing_bucket_is_created(self):
        s3 = _build_s3_mock()
        s3.head_bucket.side_effect = _client_error("404")

        await _store(s3).ensure_bucket()

        s3.create_bucket.assert_awaited_once_with(Bucket="pdf-uploads")

    async def test_location_constraint_outside_us_east_1(self):
        s3 = _build_s3_mock()
        s3.head_bucket.side_effect = _client_error("NoSuchBucket")

        await _store(s3, region="eu-central-1").ensure_bucket()

        s3.create_bucket.assert_awaited_once_with(
            Bucket="pdf-uploads",
            CreateBucketConfiguration={"LocationConstraint": "eu-central-1"},
        )

    async def test_forbidden_bucket_is_an_error(self):
        s3 = _build_s3_mock()
        s3.head_bucket.side_effect = _client_error("403")

        with pytest.raises(InfrastructureError):
            await _store(s3).ensure_bucket()
        s3.create_bucket.assert_not_awaited()

    async def test_client_is_built_with_endpoint_and_keys(self):
        store = S3ObjectStore(bucket="pdf-uploads", region="us-east-1", endpoint_url="http://minio:9000")

        with patch.object(store._session, "client") as client:
            store._client()

        kwargs = client.call_args.kwargs
        assert client.call_args.args == ("s3",)
        assert kwargs["endpoint_url"] == "http://minio:9000"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["aws_access_key_id"] == "test"
