"""Resolve dataset requests against the source registry.

Flow for one request:
    source name -> Source (registry) -> authorize user -> Dataset -> locator

Expected outcomes are returned, not raised:
- UnknownSource: no source registered under that name
- AuthorizationDenied: the source exists but the user may not see it
- InvalidRequest: the path parts or resource type cannot name a file

They are kept distinct even though a server may render the first two the
same way. Backend failures raise BackendUnavailableError, and nothing here
retries.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Union

from charon.sources.base import (
    ResourceLocator,
    ResourceType,
    Source,
    resource_type_name,
)
from charon.sources.errors import (
    BackendUnavailableError,
    InvalidPathError,
    NoResourcePathError,
)
from charon.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionFailure:
    """An expected, recoverable failure to resolve a request."""

    source_name: str

    code = "failure"

    @property
    def message(self) -> str:
        return f"Cannot resolve source '{self.source_name}'"


@dataclass(frozen=True)
class UnknownSource(ResolutionFailure):
    code = "unknown_source"

    @property
    def message(self) -> str:
        return f"Unknown source: {self.source_name}"


@dataclass(frozen=True)
class AuthorizationDenied(ResolutionFailure):
    code = "authorization_denied"

    @property
    def message(self) -> str:
        return f"Not authorized for source: {self.source_name}"


@dataclass(frozen=True)
class InvalidRequest(ResolutionFailure):
    reason: str = ""

    code = "invalid_request"

    @property
    def message(self) -> str:
        return self.reason or f"Invalid request for source: {self.source_name}"


ResolveResult = Union[ResourceLocator, UnknownSource, AuthorizationDenied, InvalidRequest]


class Resolver:
    """Entry point for resolving and listing datasets.

    Holds only the registry, which is read-only, so one resolver can serve
    any number of concurrent requests.
    """

    def __init__(self, registry: SourceRegistry):
        self.registry = registry

    def authorize(
        self, source_name: str, user: Any = None
    ) -> Source | UnknownSource | AuthorizationDenied:
        """Look up a source and check that the user may see it."""
        source = self.registry.get(source_name)
        if source is None:
            logger.debug(f"Unknown source requested: {source_name!r}")
            return UnknownSource(source_name)
        if not source.visible_to_user(user):
            logger.info(f"Access to source '{source_name}' denied")
            return AuthorizationDenied(source_name)
        return source

    async def resolve(
        self,
        source_name: str,
        path_parts: Iterable[str],
        resource_type: ResourceType | str,
        user: Any = None,
    ) -> ResolveResult:
        """Resolve one resource of one dataset to a locator.

        Raises:
            BackendUnavailableError: If the source's backend fails or times out
        """
        outcome = self.authorize(source_name, user)
        if not isinstance(outcome, Source):
            return outcome

        try:
            resource_type_name(resource_type)
            dataset = outcome.dataset(path_parts)
        except (NoResourcePathError, InvalidPathError) as e:
            return InvalidRequest(source_name, reason=str(e))

        return await dataset.locate(resource_type)

    async def list_datasets(self, source_name: str) -> list[dict] | UnknownSource:
        """List dataset requests available from a source.

        No authorization here; callers check ``authorize`` first.

        Raises:
            BackendUnavailableError: If the source's backend fails or times out
        """
        source = self.registry.get(source_name)
        if source is None:
            return UnknownSource(source_name)
        return await source.available_datasets()

    async def list_narratives(self, source_name: str) -> list[dict] | UnknownSource:
        """List narrative requests available from a source.

        Raises:
            BackendUnavailableError: If the source's backend fails or times out
        """
        source = self.registry.get(source_name)
        if source is None:
            return UnknownSource(source_name)
        return await source.available_narratives()

    async def available(self, user: Any = None) -> dict[str, list[dict]]:
        """Datasets and narratives across every source the user can see.

        Sources are listed concurrently. One whose backend fails is logged
        and left out; the others are still returned.
        """
        visible = [s for s in self.registry.values() if s.visible_to_user(user)]
        listings = await asyncio.gather(*(self._listing(s) for s in visible))

        datasets: list[dict] = []
        narratives: list[dict] = []
        for source_datasets, source_narratives in listings:
            datasets.extend(source_datasets)
            narratives.extend(source_narratives)
        return {"datasets": datasets, "narratives": narratives}

    async def _listing(self, source: Source) -> tuple[list[dict], list[dict]]:
        try:
            datasets, narratives = await asyncio.gather(
                source.available_datasets(), source.available_narratives()
            )
        except BackendUnavailableError as e:
            logger.warning(f"Leaving '{source.name}' out of available listing: {e}")
            return [], []
        return datasets, narratives
