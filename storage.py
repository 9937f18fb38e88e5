"""
Media storage for uploaded files (army training videos).

Files are written under a unique `<timestamp>-<random><ext>` name so that
concurrent uploads never collide. `save()` returns the URL clients use to
fetch the file back.
"""

import logging
import os
import shutil
import time
import uuid
from typing import BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, PartialCredentialsError

from settings import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


def unique_name(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"


class LocalStorage:
    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, fileobj: BinaryIO, filename: str, folder: str) -> str:
        directory = os.path.join(self.root, folder)
        os.makedirs(directory, exist_ok=True)
        name = unique_name(filename)
        with open(os.path.join(directory, name), "wb") as out:
            shutil.copyfileobj(fileobj, out)
        logger.info("Stored %s in %s", name, directory)
        return f"{self.url_prefix}/{folder}/{name}"


class S3Storage:
    def __init__(self, bucket: str, region: str, access_key=None, secret_key=None, client=None):
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def save(self, fileobj: BinaryIO, filename: str, folder: str) -> str:
        key = f"{folder}/{unique_name(filename)}"
        try:
            self.client.upload_fileobj(
                Fileobj=fileobj,
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ACL": "public-read"},
            )
        except (NoCredentialsError, PartialCredentialsError) as exc:
            raise StorageError("AWS credentials missing or incomplete") from exc
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload failed: {exc}") from exc
        logger.info("Uploaded %s to bucket %s", key, self.bucket)
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


def get_storage(settings: Settings):
    if settings.STORAGE_BACKEND == "s3":
        if not settings.S3_BUCKET_NAME or not settings.S3_REGION:
            raise StorageError("S3_BUCKET_NAME and S3_REGION are required for s3 storage")
        return S3Storage(
            settings.S3_BUCKET_NAME,
            settings.S3_REGION,
            access_key=settings.AWS_ACCESS_KEY,
            secret_key=settings.AWS_SECRET_KEY,
        )
    if settings.STORAGE_BACKEND != "local":
        raise StorageError(f"Unknown storage backend {settings.STORAGE_BACKEND!r}")
    return LocalStorage(settings.UPLOAD_DIR)
