"""
Presigned upload requests for album and collage source files.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from django.conf import settings
from django.utils import timezone

from orders.domain.errors import ValidationError
from orders.domain.validation import ALLOWED_UPLOAD_TYPES, validate_upload_request
from orders.infra.pii_masker import mask_uuid
from orders.infra.storage import S3BlobSigner

logger = logging.getLogger(__name__)

UNSAFE_FILE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_file_name(file_name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return UNSAFE_FILE_NAME_CHARS.sub("_", file_name)


def build_upload_key(kind: str, owner_id: str, file_name: str, timestamp_ms: int) -> str:
    return f"{kind}s/{owner_id}/{timestamp_ms}-{sanitize_file_name(file_name)}"


@dataclass(frozen=True)
class PresignedUpload:
    upload_key: str
    upload_url: str
    expires_in: int
    expiry: datetime
    max_file_size: int
    allowed_types: tuple[str, ...] = ALLOWED_UPLOAD_TYPES


class UploadService:
    """Validate upload metadata and delegate URL signing to a blob signer."""

    def __init__(
        self,
        signer=None,
        clock: Callable[[], datetime] | None = None,
        max_file_size: int | None = None,
        ttl: int | None = None,
    ):
        self._signer = signer
        self.clock = clock or timezone.now
        self.max_file_size = max_file_size or settings.UPLOAD_MAX_FILE_SIZE_MB * 1024 * 1024
        self.ttl = ttl or settings.UPLOAD_URL_TTL_SECONDS

    @property
    def signer(self):
        if self._signer is None:
            self._signer = S3BlobSigner()
        return self._signer

    def presign(
        self,
        kind: str,
        owner_id: str,
        file_name: str,
        content_type: str,
        file_size: int | None = None,
    ) -> PresignedUpload:
        validation = validate_upload_request(
            kind, owner_id, file_name, content_type, file_size, self.max_file_size
        )
        if not validation.valid:
            first = validation.errors[0]
            raise ValidationError(
                first.message, validation.errors, first.code, self._error_context(first.code)
            )

        now = self.clock()
        key = build_upload_key(kind, owner_id, file_name, int(now.timestamp() * 1000))
        metadata = {
            "originalName": file_name,
            "uploadType": kind,
            "ownerId": owner_id,
            "uploadedAt": now.isoformat(),
        }
        url = self.signer.sign(key, content_type, self.ttl, metadata)

        logger.info(
            "upload_presigned",
            extra={"operation": "presign_upload", "owner_id": mask_uuid(owner_id)},
        )
        return PresignedUpload(
            upload_key=key,
            upload_url=url,
            expires_in=self.ttl,
            expiry=now + timedelta(seconds=self.ttl),
            max_file_size=self.max_file_size,
        )

    def _error_context(self, code: str | None) -> dict:
        if code == "INVALID_CONTENT_TYPE":
            return {"allowedTypes": list(ALLOWED_UPLOAD_TYPES)}
        if code == "FILE_TOO_LARGE":
            return {"maxFileSize": self.max_file_size}
        return {}
