"""Private, access-controlled sources backed by an object store.

Each tenant is one bucket plus an access rule. Objects follow the same
naming rule as every other source (zika_tree.json, zika_meta.json, ...),
but URLs are signed per call and expire, so they are never cached.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from charon.sources.base import (
    Dataset,
    ResourceLocator,
    ResourceType,
    Source,
    resource_type_name,
    user_groups,
)
from charon.sources.errors import BackendUnavailableError
from charon.sources.storage import DEFAULT_SIGNED_URL_EXPIRY, ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_TIMEOUT = 10.0  # seconds

# Every dataset has a tree file, so its key marks the dataset as present
TREE_SUFFIX = "_tree.json"


def datasets_from_keys(source_name: str, keys: Iterable[str]) -> list[dict[str, str]]:
    """Map bucket keys back to dataset requests.

    Inverse of the basename rule: "a_b_tree.json" -> "<source>/a/b". Keys
    without the tree suffix are ignored. Results are de-duplicated and sorted.
    """
    paths = set()
    for key in keys:
        if not key.endswith(TREE_SUFFIX):
            continue
        stem = key[: -len(TREE_SUFFIX)]
        if not stem:
            continue
        paths.add("/".join(stem.split("_")))
    return [{"request": f"{source_name}/{path}"} for path in sorted(paths)]


class PrivateStoreSource(Source):
    """Base for object-store tenants.

    Subclasses must define ``bucket`` and ``visible_to_user``. The access
    rule is never inherited: a subclass without one cannot be instantiated.
    """

    def __init__(
        self,
        store: ObjectStore,
        timeout: float | None = DEFAULT_STORAGE_TIMEOUT,
        signed_url_expiry: int = DEFAULT_SIGNED_URL_EXPIRY,
    ):
        self.store = store
        self.timeout = timeout
        self.signed_url_expiry = signed_url_expiry

    @property
    @abstractmethod
    def bucket(self) -> str:
        """Bucket holding this tenant's objects."""

    @abstractmethod
    def visible_to_user(self, user: Any) -> bool:
        """Access rule for this tenant."""

    def dataset(self, path_parts: Iterable[str]) -> "PrivateStoreDataset":
        return PrivateStoreDataset(self, path_parts)

    async def call_store(self, operation: str, func: Callable, *args: Any) -> Any:
        """Run a blocking store call in the default executor.

        Bounded by ``timeout``. Any failure, including a timeout, becomes a
        BackendUnavailableError naming this source and the operation.

        Known scaling limits: a timed-out call is abandoned, not cancelled,
        so its worker thread keeps running in the default executor until the
        store returns. Listings read a single page unless the store was built
        with ``list_all_pages``.
        """
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(func, *args)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"[{self.name}] {operation} timed out after {self.timeout}s")
            raise BackendUnavailableError(
                self.name, operation, f"timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            logger.error(f"[{self.name}] {operation} failed: {e}")
            raise BackendUnavailableError(self.name, operation, str(e)) from e

    async def available_datasets(self) -> list[dict[str, str]]:
        keys = await self.call_store("list_objects", self.store.list_keys, self.bucket)
        datasets = datasets_from_keys(self.name, keys)
        logger.debug(f"[{self.name}] {len(datasets)} datasets in {len(keys)} keys")
        return datasets


class PrivateStoreDataset(Dataset):
    source: PrivateStoreSource

    def url_for(self, resource_type: ResourceType | str) -> str:
        """Sign a fresh URL for this resource (blocking)."""
        return self.source.store.signed_url(
            self.source.bucket,
            self.base_name_for(resource_type),
            "get_object",
            self.source.signed_url_expiry,
        )

    async def locate(self, resource_type: ResourceType | str) -> ResourceLocator:
        key = self.base_name_for(resource_type)
        issued_at = datetime.now(timezone.utc)
        url = await self.source.call_store("sign_url", self.url_for, resource_type)
        return ResourceLocator(
            resource_type=resource_type_name(resource_type),
            url=url,
            object_key=key,
            expires_at=issued_at + timedelta(seconds=self.source.signed_url_expiry),
        )


class GroupScopedSource(PrivateStoreSource):
    """Tenant visible to members of a single group."""

    def __init__(
        self,
        name: str,
        bucket: str,
        group: str,
        store: ObjectStore,
        timeout: float | None = DEFAULT_STORAGE_TIMEOUT,
        signed_url_expiry: int = DEFAULT_SIGNED_URL_EXPIRY,
    ):
        super().__init__(store, timeout=timeout, signed_url_expiry=signed_url_expiry)
        self._name = name
        self._bucket = bucket
        self.group = group

    @property
    def name(self) -> str:
        return self._name

    @property
    def bucket(self) -> str:
        return self._bucket

    def visible_to_user(self, user: Any) -> bool:
        return self.group in user_groups(user)


class InrbDrcSource(GroupScopedSource):
    """INRB (Democratic Republic of the Congo) private datasets."""

    def __init__(
        self,
        store: ObjectStore,
        timeout: float | None = DEFAULT_STORAGE_TIMEOUT,
        signed_url_expiry: int = DEFAULT_SIGNED_URL_EXPIRY,
    ):
        super().__init__(
            "inrb-drc",
            "nextstrain-inrb",
            "inrb",
            store,
            timeout=timeout,
            signed_url_expiry=signed_url_expiry,
        )
