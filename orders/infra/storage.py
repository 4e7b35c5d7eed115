"""
Blob storage signing for direct uploads.
"""
from __future__ import annotations

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from orders.domain.errors import RepositoryError

logger = logging.getLogger(__name__)


class BlobSigningError(RepositoryError):
    """Blob storage could not issue a presigned URL."""

    code = "PRESIGN_ERROR"


class S3BlobSigner:
    """Issue presigned PUT URLs for the upload bucket.

    The boto3 client is passed in by the hosting layer; when omitted one is
    built from ``AWS_REGION``.
    """

    def __init__(self, client=None, bucket: str | None = None, region: str | None = None):
        self.bucket = bucket or settings.UPLOAD_BUCKET_NAME
        self.client = client or boto3.client("s3", region_name=region or settings.AWS_REGION)

    def sign(self, key: str, content_type: str, ttl: int, metadata: dict | None = None) -> str:
        """Presign a PUT; ``metadata`` becomes the object's user metadata."""
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "ContentType": content_type,
        }
        if metadata:
            params["Metadata"] = {name: str(value) for name, value in metadata.items()}
        try:
            return self.client.generate_presigned_url(
                "put_object",
                Params=params,
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "presign_failed",
                extra={"operation": "presign_upload", "error": str(e)},
            )
            raise BlobSigningError("Failed to generate presigned URL") from e
