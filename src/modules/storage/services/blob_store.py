"""
Blob storage for signature images and generated PDFs.

Blobs are publicly readable by URL and addressed by key. Keys are scoped by
submission id, so nothing ever overwrites another submission's file.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from config import Settings, get_settings
from logging_config import get_logger

logger = get_logger(__name__)

SIGNATURE_PREFIX = "signatures"
PDF_PREFIX = "pdfs"


class BlobStoreError(Exception):
    """Upload to the blob store failed."""
    pass


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str


class BlobStore(ABC):

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        """Stores the bytes under key and returns the public URL."""
        pass


class LocalBlobStore(BlobStore):
    """Writes blobs under a local directory served by the app at /blobs."""

    def __init__(self, root_dir: str, public_base_url: str):
        self.root_dir = root_dir
        self.public_base_url = public_base_url.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        path = os.path.join(self.root_dir, *key.split("/"))
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise BlobStoreError(f"Unable to write blob {key}: {e}") from e
        logger.debug(f"Stored blob {key} ({len(data)} bytes) at {path}")
        return StoredBlob(key=key, url=f"{self.public_base_url}/blobs/{key}")


class S3BlobStore(BlobStore):
    """S3-compatible bucket (AWS, MinIO, Spaces) with public-read objects."""

    def __init__(
        self,
        bucket: str,
        region: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(signature_version="s3v4"),
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            raise BlobStoreError(f"Unable to upload blob {key}") from e
        return StoredBlob(key=key, url=self.public_url(key))


def put_signature(store: BlobStore, submission_id: int, data: bytes, content_type: str = "image/png") -> StoredBlob:
    return store.put(f"{SIGNATURE_PREFIX}/{submission_id}.png", data, content_type)


def put_pdf(store: BlobStore, submission_id: int, data: bytes) -> StoredBlob:
    return store.put(f"{PDF_PREFIX}/{submission_id}.pdf", data, "application/pdf")


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.BLOB_BACKEND == "s3":
        return S3BlobStore(
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            public_base_url=settings.S3_PUBLIC_BASE_URL,
        )
    if settings.BLOB_BACKEND == "local":
        return LocalBlobStore(settings.BLOB_LOCAL_DIR, settings.PUBLIC_BASE_URL)
    raise ValueError(f"Unknown BLOB_BACKEND: {settings.BLOB_BACKEND}")


_blob_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency; the store is built once from settings."""
    global _blob_store
    if _blob_store is None:
        _blob_store = build_blob_store(get_settings())
    return _blob_store
