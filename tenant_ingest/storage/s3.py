"""
Object Store Adapter — S3 / MinIO

Raw PDF bytes live in a single bucket, partitioned by key:

    <tenant_name>/<YYYY>/<MM>/<DD>/<uuid4><ext>

The key is built server-side from the validated tenant name, the upload
date and a fresh uuid4, so keys are globally unique and sort by date.

The document record only points at the object (storage_path / storage_url);
the bucket owns the bytes. Objects are never deleted by this service: tenant
deletion is logical and leaves blobs in place for restore.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from tenant_ingest.core.config import settings
from tenant_ingest.core.errors import InfrastructureError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class StoredObject:
    """Returned by put_object — the key and a URL clients can fetch it from."""
    path: str
    url:  str


def build_object_key(tenant_name: str, uploaded_at: datetime, ext: str) -> str:
    """
    Pattern:  <tenant_name>/<YYYY>/<MM>/<DD>/<uuid4><ext>

    ext is taken verbatim from the uploaded filename (".pdf", ".PDF").
    """
    return f"{tenant_name}/{uploaded_at:%Y/%m/%d}/{uuid.uuid4()}{ext}"


class S3ObjectStore:
    """
    Async S3 operations on the upload bucket.

    Stateless apart from the aioboto3 session; a client is opened per call,
    so one instance is safe to share across concurrent requests.
    """

    def __init__(
        self,
        bucket:      str | None = None,
        region:      str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self._bucket   = bucket or settings.s3_bucket
        self._region   = region or settings.aws_region
        self._endpoint = (settings.s3_endpoint_url if endpoint_url is None else endpoint_url).rstrip("/")
        self._session  = aioboto3.Session()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self):
        """Return a scoped async S3 client context manager."""
        kwargs: dict = {"region_name": self._region}
        if self._endpoint:
            kwargs["endpoint_url"] = self._endpoint
        # Local dev / MinIO: static keys. Prod: task role, keys left empty.
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            kwargs["aws_access_key_id"]     = settings.aws_access_key_id
            kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        return self._session.client("s3", **kwargs)

    def object_url(self, key: str) -> str:
        """
        Path-style URL for MinIO-style endpoints, virtual-hosted style for AWS.
        """
        if self._endpoint:
            return f"{self._endpoint}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    async def put_object(
        self,
        key:          str,
        body:         bytes,
        content_type: str = PDF_CONTENT_TYPE,
    ) -> StoredObject:
        """
        Upload bytes under `key`.

        Raises:
            InfrastructureError: S3 rejected the write or was unreachable.
                A partially written object is not cleaned up.
        """
        try:
            async with self._client() as s3:
                await s3.put_object(
                    Bucket=self._bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (ClientError, BotoCoreError) as exc:
            logger.exception("S3 upload failed | bucket=%s key=%s", self._bucket, key)
            raise InfrastructureError("unable to upload file") from exc

        logger.info("S3 upload ok | key=%s size=%d", key, len(body))
        return StoredObject(path=key, url=self.object_url(key))

    async def ensure_bucket(self) -> None:
        """Create the upload bucket if it does not exist. Called at startup."""
        async with self._client() as s3:
            try:
                await s3.head_bucket(Bucket=self._bucket)
                logger.info("S3 bucket ready | bucket=%s", self._bucket)
                return
            except ClientError as exc:
                code = exc.response.get("Error", {}).get("Code", "")
                if code not in ("404", "NoSuchBucket", "NotFound"):
                    logger.exception("S3 bucket check failed | bucket=%s", self._bucket)
                    raise InfrastructureError("unable to check bucket existence") from exc
            except BotoCoreError as exc:
                logger.exception("S3 bucket check failed | bucket=%s", self._bucket)
                raise InfrastructureError("unable to check bucket existence") from exc

            params: dict = {"Bucket": self._bucket}
            if self._region != "us-east-1":
                params["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
            try:
                await s3.create_bucket(**params)
            except (ClientError, BotoCoreError) as exc:
                logger.exception("S3 bucket create failed | bucket=%s", self._bucket)
                raise InfrastructureError("unable to create bucket") from exc

        logger.info("S3 bucket created | bucket=%s region=%s", self._bucket, self._region)
