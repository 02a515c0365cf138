"""Object-store client used by private sources.

Private sources only need two things from storage: the keys in a bucket and
a time-limited URL for one key. ObjectStore is that contract; S3ObjectStore
implements it on boto3. Calls here are synchronous and may block on the
network. PrivateStoreSource moves them off the event loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import boto3
from botocore.config import Config

if TYPE_CHECKING:
    from charon.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_EXPIRY = 900  # seconds


@runtime_checkable
class ObjectStore(Protocol):
    """Storage interface for private sources."""

    def list_keys(self, bucket: str) -> list[str]:
        """Return object keys in a bucket."""
        ...

    def signed_url(
        self,
        bucket: str,
        key: str,
        operation: str = "get_object",
        expires_in: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        """Return a time-limited URL granting ``operation`` on one object."""
        ...


class S3ObjectStore:
    """ObjectStore backed by a boto3 S3 client.

    By default only the first page of a listing is read (up to 1000 keys).
    Larger buckets undercount; a warning is logged when S3 reports the
    listing as truncated. Set ``list_all_pages`` to walk every page.
    """

    def __init__(self, client: Any, list_all_pages: bool = False):
        self.client = client
        self.list_all_pages = list_all_pages

    def list_keys(self, bucket: str) -> list[str]:
        if self.list_all_pages:
            return self._list_all_keys(bucket)

        response = self.client.list_objects_v2(Bucket=bucket)
        if response.get("IsTruncated"):
            logger.warning(
                f"Listing of s3://{bucket} truncated at "
                f"{response.get('KeyCount', len(response.get('Contents', [])))} keys; "
                "enable list_all_pages to read the whole bucket"
            )
        return [obj["Key"] for obj in response.get("Contents", [])]

    def _list_all_keys(self, bucket: str) -> list[str]:
        keys: list[str] = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    def signed_url(
        self,
        bucket: str,
        key: str,
        operation: str = "get_object",
        expires_in: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        return self.client.generate_presigned_url(
            operation,
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )


def create_s3_client(settings: "Settings") -> Any:
    """Create a boto3 S3 client from settings.

    Credentials are resolved by boto3's usual chain (environment, profile,
    instance role); this package never handles them directly.
    """
    session_kwargs: dict[str, str] = {}
    if settings.aws_profile:
        session_kwargs["profile_name"] = settings.aws_profile
    if settings.aws_region:
        session_kwargs["region_name"] = settings.aws_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3", config=Config(signature_version="s3v4"))
