"""Artifact store for room source images on Cloudflare R2 (S3-compatible).

``store_image`` uploads bytes and returns a ``StoredArtifact`` whose ``id`` is
the object key and whose ``url`` is either a public URL (when
R2_PUBLIC_BASE_URL is set) or a presigned GET URL. Keys follow::

    rooms/{room_id}/original/{uuid}.jpg
"""

from __future__ import annotations

import mimetypes
import uuid
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from roomai.config import settings
from roomai.models.contracts import StoredArtifact

logger = structlog.get_logger()


def r2_configured() -> bool:
    return bool(
        settings.r2_account_id
        and settings.r2_access_key_id
        and settings.r2_secret_access_key
        and settings.r2_bucket_name
    )


def _build_client() -> Any:
    return boto3.client(
        "s3",
        endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


_client: Any = None


def get_client() -> Any:
    """Lazy singleton S3 client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = _build_client()
    return _client


def reset_client() -> None:
    """Drop the cached client (tests)."""
    global _client  # noqa: PLW0603
    _client = None


def upload_object(key: str, data: bytes, content_type: str = "image/jpeg") -> str:
    get_client().put_object(
        Bucket=settings.r2_bucket_name,
        Key=key,
        Body=data,
        ContentType=content_type,
    )
    logger.info("r2_upload", key=key, size=len(data), content_type=content_type)
    return key


def generate_presigned_url(key: str) -> str:
    """Presigned GET URL, valid for PRESIGNED_URL_EXPIRY_SECONDS."""
    try:
        url: str = get_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.r2_bucket_name, "Key": key},
            ExpiresIn=settings.presigned_url_expiry_seconds,
        )
    except ClientError as e:
        logger.error("r2_presign_failed", key=key, error=str(e))
        raise
    return url


def delete_object(key: str) -> None:
    get_client().delete_object(Bucket=settings.r2_bucket_name, Key=key)
    logger.info("r2_delete", key=key)


def object_url(key: str) -> str:
    if settings.r2_public_base_url:
        return f"{settings.r2_public_base_url.rstrip('/')}/{key}"
    return generate_presigned_url(key)


def store_image(data: bytes, *, prefix: str, content_type: str = "image/jpeg") -> StoredArtifact:
    extension = mimetypes.guess_extension(content_type) or ".bin"
    key = f"{prefix.strip('/')}/{uuid.uuid4().hex}{extension}"
    upload_object(key, data, content_type=content_type)
    return StoredArtifact(url=object_url(key), id=key)


def delete_image(key: str) -> None:
    """Best-effort delete; failures are logged and swallowed."""
    try:
        delete_object(key)
    except (ClientError, BotoCoreError) as e:
        logger.warning("r2_delete_failed", key=key, error=str(e))
