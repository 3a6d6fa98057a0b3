"""S3 object storage access for inputs, Polly outputs, and published artifacts."""

import asyncio
import logging
import shutil
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from voicecast.constants import S3_DELETE_BATCH, S3_MAX_LIST_KEYS
from voicecast.errors import StorageError

logger = logging.getLogger(__name__)


def parse_s3_location(uri: str) -> tuple[str, str]:
    """Split an S3 URI into (bucket, key).

    Accepts s3://bucket/key, path-style https://s3.<region>.amazonaws.com/bucket/key
    (what Polly reports as OutputUri) and virtual-hosted
    https://bucket.s3.<region>.amazonaws.com/key.
    """
    parsed = urlparse(uri)
    path = parsed.path.lstrip("/")

    if parsed.scheme == "s3":
        bucket, key = parsed.netloc, path
    elif parsed.scheme in ("http", "https"):
        host = parsed.netloc
        if host.startswith("s3.") or host.startswith("s3-") or host == "s3.amazonaws.com":
            bucket, _, key = path.partition("/")
        elif ".s3." in host or ".s3-" in host:
            bucket, key = host.split(".s3", 1)[0], path
        else:
            raise ValueError(f"Not an S3 URL: {uri}")
    else:
        raise ValueError(f"Not an S3 URI: {uri}")

    if not bucket or not key:
        raise ValueError(f"S3 URI needs both bucket and key: {uri}")
    return bucket, key


class ObjectStore:
    """Async facade over a boto3 S3 client. Every call runs in a worker thread."""

    def __init__(self, client=None, region_name: str | None = None) -> None:
        self._s3 = client if client is not None else boto3.client("s3", region_name=region_name)

    async def _call(self, operation: str, bucket: str, target: str, **kwargs):
        method = getattr(self._s3, operation)
        try:
            return await asyncio.to_thread(method, Bucket=bucket, **kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"S3 {operation} failed for s3://{bucket}/{target}: {exc}") from exc

    async def get_bytes(self, bucket: str, key: str) -> bytes:
        response = await self._call("get_object", bucket, key, Key=key)
        return await asyncio.to_thread(response["Body"].read)

    async def get_text(self, bucket: str, key: str) -> str:
        data = await self.get_bytes(bucket, key)
        return data.decode("utf-8")

    async def download(self, bucket: str, key: str, path: str) -> str:
        """Stream one object to a local file and return the path."""
        response = await self._call("get_object", bucket, key, Key=key)
        body = response["Body"]

        def _write():
            with open(path, "wb") as f:
                shutil.copyfileobj(body, f)

        await asyncio.to_thread(_write)
        return path

    async def put_file(self, bucket: str, key: str, path: str, content_type: str | None = None) -> None:
        def _read():
            with open(path, "rb") as f:
                return f.read()

        data = await asyncio.to_thread(_read)
        extra = {"ContentType": content_type} if content_type else {}
        await self._call("put_object", bucket, key, Key=key, Body=data, **extra)

    async def list_keys(self, bucket: str, prefix: str) -> list[str]:
        """List every key under prefix with the ListObjectsV2 paginator."""

        def _collect():
            pages = self._s3.get_paginator("list_objects_v2").paginate(
                Bucket=bucket, Prefix=prefix, PaginationConfig={"MaxItems": S3_MAX_LIST_KEYS}
            )
            keys = []
            for page in pages:
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
            if pages.resume_token:
                raise StorageError(f"Listing s3://{bucket}/{prefix} exceeded {S3_MAX_LIST_KEYS} keys")
            return keys

        try:
            return await asyncio.to_thread(_collect)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"S3 list_objects_v2 failed for s3://{bucket}/{prefix}: {exc}") from exc

    async def delete_keys(self, bucket: str, keys: list[str]) -> int:
        """Delete keys in DeleteObjects-sized batches. Returns the number deleted."""
        deleted = 0
        for start in range(0, len(keys), S3_DELETE_BATCH):
            batch = keys[start:start + S3_DELETE_BATCH]
            response = await self._call(
                "delete_objects", bucket, batch[0],
                Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
            )
            errors = response.get("Errors") or []
            if errors:
                for err in errors:
                    logger.warning("Could not delete s3://%s/%s: %s", bucket, err.get("Key"), err.get("Message"))
                raise StorageError(f"{len(errors)} object(s) under s3://{bucket} could not be deleted")
            deleted += len(batch)
        return deleted

    async def delete_prefix(self, bucket: str, prefix: str, keep=()) -> int:
        """Delete every object under prefix except the keys in keep."""
        if not prefix:
            raise ValueError("Refusing to delete an empty prefix")
        keys = [k for k in await self.list_keys(bucket, prefix) if k not in keep]
        if not keys:
            return 0
        return await self.delete_keys(bucket, keys)
