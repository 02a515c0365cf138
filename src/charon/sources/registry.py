"""Source registry.

The registry is built once at startup and never changes afterwards. A new
listing snapshot or tenant file means building a new registry.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Iterator

from charon.sources.base import Source
from charon.sources.community import CommunitySource
from charon.sources.errors import DuplicateSourceError
from charon.sources.listing import ListingSnapshot
from charon.sources.private import GroupScopedSource, InrbDrcSource
from charon.sources.static import LiveSource, StagingSource
from charon.sources.storage import ObjectStore, S3ObjectStore, create_s3_client
from charon.sources.tenants import DEFAULT_TENANTS, TenantConfig, load_tenants

if TYPE_CHECKING:
    from charon.config import Settings

logger = logging.getLogger(__name__)


class SourceRegistry(Mapping):
    """Immutable, ordered mapping of source name to Source.

    ``get(name)`` returns None for unknown names; ``registry[name]`` raises
    KeyError like any mapping.
    """

    def __init__(self, sources: Iterable[Source]):
        entries: dict[str, Source] = {}
        for source in sources:
            name = source.name
            if name in entries:
                raise DuplicateSourceError(f"Source name registered twice: {name!r}")
            entries[name] = source
        self._sources = MappingProxyType(entries)

    def __getitem__(self, name: str) -> Source:
        return self._sources[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    @property
    def names(self) -> list[str]:
        return list(self._sources)

    def __repr__(self) -> str:
        return f"SourceRegistry({self.names!r})"


def build_registry(
    settings: "Settings | None" = None,
    store: ObjectStore | None = None,
    listings: ListingSnapshot | None = None,
    tenants: Iterable[TenantConfig] | None = None,
) -> SourceRegistry:
    """Build the process-wide registry.

    Order: live, staging, community, then private tenants in configuration
    order.

    Args:
        settings: Runtime settings (read from the environment if not provided)
        store: Object store for private tenants (S3 from settings if not provided)
        listings: Static-host listings (settings.listings_path or empty)
        tenants: Tenant definitions (settings.tenants_path or the defaults)
    """
    if settings is None:
        from charon.config import Settings

        settings = Settings.from_env()

    if listings is None:
        listings = (
            ListingSnapshot.load(settings.listings_path)
            if settings.listings_path
            else ListingSnapshot.empty()
        )

    if tenants is None:
        tenants = (
            load_tenants(settings.tenants_path)
            if settings.tenants_path
            else DEFAULT_TENANTS
        )

    if store is None:
        store = S3ObjectStore(
            create_s3_client(settings), list_all_pages=settings.list_all_pages
        )

    sources: list[Source] = [
        LiveSource(settings.live_base_url, listings),
        StagingSource(settings.staging_base_url, listings),
        CommunitySource(settings.community_base_url, settings.community_branch),
    ]
    for tenant in tenants:
        sources.append(_tenant_source(tenant, store, settings))

    registry = SourceRegistry(sources)
    logger.info(f"Registered sources: {', '.join(registry.names)}")
    return registry


def _tenant_source(
    tenant: TenantConfig, store: ObjectStore, settings: "Settings"
) -> GroupScopedSource:
    if tenant in DEFAULT_TENANTS:
        return InrbDrcSource(
            store,
            timeout=settings.storage_timeout,
            signed_url_expiry=settings.signed_url_expiry,
        )
    return GroupScopedSource(
        tenant.name,
        tenant.bucket,
        tenant.group,
        store,
        timeout=settings.storage_timeout,
        signed_url_expiry=settings.signed_url_expiry,
    )
