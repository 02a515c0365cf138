"""Public static file hosts (live and staging)."""

from __future__ import annotations

from charon.sources.base import Source
from charon.sources.listing import ListingSnapshot


class StaticHostSource(Source):
    """A source whose files sit directly under one public base URL.

    Available datasets and narratives come from an injected snapshot, since a
    static host cannot be listed.
    """

    source_name: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        base_url: str | None = None,
        listings: ListingSnapshot | None = None,
    ):
        url = base_url or self.default_base_url
        # urljoin drops the last path segment of a base without a trailing slash
        self._base_url = url if url.endswith("/") else url + "/"
        self.listings = listings or ListingSnapshot.empty()

    @property
    def name(self) -> str:
        return self.source_name

    @property
    def base_url(self) -> str:
        return self._base_url

    async def available_datasets(self) -> list[dict[str, str]]:
        return self.listings.datasets_for(self.name)

    async def available_narratives(self) -> list[dict[str, str]]:
        return self.listings.narratives_for(self.name)


class LiveSource(StaticHostSource):
    source_name = "live"
    default_base_url = "http://data.nextstrain.org/"


class StagingSource(StaticHostSource):
    source_name = "staging"
    default_base_url = "http://staging.nextstrain.org/"
