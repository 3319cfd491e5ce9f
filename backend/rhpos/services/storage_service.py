# Overview: S3-compatible object storage for product images, namespaced per tenant.

"""
Object storage collaborator.

The core only needs three operations: put, get and presign. Keys always start
with the encoded tenant token, so two tenants' objects can never collide and
raw tenant ids never appear in a key.
"""

from __future__ import annotations

import logging
import time

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from ..errors import StorageError

logger = logging.getLogger(__name__)

PRESIGNED_GET_TTL_SECONDS = 60 * 60
PRESIGNED_PUT_TTL_SECONDS = 15 * 60


class ObjectStorage:
    """Thin wrapper around a boto3 S3 client bound to one bucket."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config) -> "ObjectStorage":
        endpoint = config["STORAGE_ENDPOINT"]
        if endpoint and "://" not in endpoint:
            scheme = "https" if config.get("STORAGE_USE_SSL") else "http"
            endpoint = f"{scheme}://{endpoint}"
        client = boto3.client(
            "s3",
            endpoint_url=endpoint or None,
            aws_access_key_id=config["STORAGE_ACCESS_KEY"] or None,
            aws_secret_access_key=config["STORAGE_SECRET_KEY"] or None,
            region_name=config.get("STORAGE_REGION") or None,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        logger.info("object storage client initialized bucket=%s endpoint=%s", config["STORAGE_BUCKET"], endpoint)
        return cls(client, config["STORAGE_BUCKET"])

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("failed to upload object key=%s", key)
            raise StorageError("upload", key, exc) from exc

    def get(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            logger.exception("failed to download object key=%s", key)
            raise StorageError("download", key, exc) from exc

    def presign(self, key: str, ttl_seconds: int, for_upload: bool) -> str:
        method = "put_object" if for_upload else "get_object"
        try:
            return self.client.generate_presigned_url(
                method,
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=int(ttl_seconds),
            )
        except (ClientError, BotoCoreError) as exc:
            logger.exception("failed to presign object key=%s", key)
            raise StorageError("presign", key, exc) from exc


def get_storage() -> ObjectStorage:
    storage = current_app.extensions.get("object_storage")
    if storage is None:
        raise StorageError("configure", None, RuntimeError("object storage is not configured"))
    return storage


def tenant_prefix(codec, tenant_id: int) -> str:
    return f"tenants/{codec.encode(tenant_id)}"


def normalize_extension(ext: str | None) -> str:
    ext = (ext or "").strip().lower()
    if "." in ext:
        ext = ext.rsplit(".", 1)[-1]
    return ext or "bin"


def product_image_key(codec, tenant_id: int, product_id: int, ext: str, now: float | None = None) -> str:
    """tenants/{tenant token}/products/{product token}_{unix ts}.{ext}"""
    timestamp = int(now if now is not None else time.time())
    return (
        f"{tenant_prefix(codec, tenant_id)}/products/"
        f"{codec.encode(product_id)}_{timestamp}.{normalize_extension(ext)}"
    )


def key_belongs_to_tenant(codec, tenant_id: int, key: str | None) -> bool:
    return bool(key) and key.startswith(tenant_prefix(codec, tenant_id) + "/")
