"""API route definitions."""

from __future__ import annotations

import logging
from typing import Any, List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Request

try:
    from typing import Annotated
except ImportError:
    from typing_extensions import Annotated

from charon.api.models import (
    AvailableResponse,
    ListingResponse,
    LocatorResponse,
    RequestEntryModel,
    SourceModel,
    SourcesListResponse,
)
from charon.resolver import (
    AuthorizationDenied,
    InvalidRequest,
    ResolutionFailure,
    Resolver,
    UnknownSource,
)
from charon.sources.base import ResourceType, Source
from charon.sources.community import CommunitySource
from charon.sources.errors import BackendUnavailableError
from charon.sources.private import PrivateStoreSource

# Keep typing imports in namespace for Pydantic annotation evaluation
__typing_imports__ = (List,)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["sources"])

_FAILURE_STATUS = {
    UnknownSource: (404, "E_UNKNOWN_SOURCE"),
    AuthorizationDenied: (403, "E_FORBIDDEN"),
    InvalidRequest: (400, "E_INVALID_REQUEST"),
}


def get_resolver(request: Request) -> Resolver:
    """Resolver built at startup (see create_app)."""
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise HTTPException(status_code=503, detail="Source registry not initialized")
    return resolver


def get_current_user(request: Request) -> Any:
    """User object set by the upstream authentication layer, if any.

    Authentication is not handled here. Deployments put the user on
    ``request.state.user`` in middleware or override this dependency.
    """
    return getattr(request.state, "user", None)


def _raise_failure(failure: ResolutionFailure) -> NoReturn:
    status_code, error = _FAILURE_STATUS.get(type(failure), (400, "E_FAILURE"))
    raise HTTPException(
        status_code=status_code,
        detail={"error": error, "code": failure.code, "message": failure.message},
    )


def _raise_backend_unavailable(e: BackendUnavailableError) -> NoReturn:
    raise HTTPException(
        status_code=503,
        detail={
            "error": "E_BACKEND_UNAVAILABLE",
            "code": "backend_unavailable",
            "message": str(e),
            "source": e.source_name,
            "operation": e.operation,
        },
    )


def _source_kind(source: Source) -> str:
    if isinstance(source, PrivateStoreSource):
        return "private"
    if isinstance(source, CommunitySource):
        return "community"
    return "static"


@router.get("/sources", response_model=SourcesListResponse)
async def list_sources(resolver: Resolver = Depends(get_resolver)):
    """List registered sources."""
    return SourcesListResponse(
        sources=[
            SourceModel(name=name, kind=_source_kind(source))
            for name, source in resolver.registry.items()
        ]
    )


@router.get("/sources/{source_name}/datasets", response_model=ListingResponse)
async def list_source_datasets(
    source_name: str,
    resolver: Resolver = Depends(get_resolver),
    user: Any = Depends(get_current_user),
):
    """List datasets of one source the current user may see."""
    outcome = resolver.authorize(source_name, user)
    if isinstance(outcome, ResolutionFailure):
        _raise_failure(outcome)

    try:
        entries = await resolver.list_datasets(source_name)
    except BackendUnavailableError as e:
        _raise_backend_unavailable(e)

    return ListingResponse(
        source=source_name,
        entries=[RequestEntryModel(request=e["request"]) for e in entries],
    )


@router.get("/sources/{source_name}/narratives", response_model=ListingResponse)
async def list_source_narratives(
    source_name: str,
    resolver: Resolver = Depends(get_resolver),
    user: Any = Depends(get_current_user),
):
    """List narratives of one source the current user may see."""
    outcome = resolver.authorize(source_name, user)
    if isinstance(outcome, ResolutionFailure):
        _raise_failure(outcome)

    try:
        entries = await resolver.list_narratives(source_name)
    except BackendUnavailableError as e:
        _raise_backend_unavailable(e)

    return ListingResponse(
        source=source_name,
        entries=[RequestEntryModel(request=e["request"]) for e in entries],
    )


@router.get("/available", response_model=AvailableResponse)
async def available(
    resolver: Resolver = Depends(get_resolver),
    user: Any = Depends(get_current_user),
):
    """Datasets and narratives across all sources visible to the current user."""
    listing = await resolver.available(user)
    return AvailableResponse(
        datasets=[RequestEntryModel(request=e["request"]) for e in listing["datasets"]],
        narratives=[
            RequestEntryModel(request=e["request"]) for e in listing["narratives"]
        ],
    )


@router.get("/resolve", response_model=LocatorResponse)
async def resolve(
    source: Annotated[str, Query(description="Source identifier, e.g. 'live'")],
    path: Annotated[
        List[str], Query(description="Dataset path parts, repeated in order")
    ],
    resource_type: Annotated[
        ResourceType, Query(alias="type", description="Resource type")
    ] = ResourceType.TREE,
    resolver: Resolver = Depends(get_resolver),
    user: Any = Depends(get_current_user),
):
    """
    Resolve one resource of a dataset to a fetchable URL.

    Signed URLs (private sources) expire and must not be cached.
    """
    try:
        result = await resolver.resolve(source, path, resource_type, user)
    except BackendUnavailableError as e:
        _raise_backend_unavailable(e)

    if isinstance(result, ResolutionFailure):
        _raise_failure(result)

    return LocatorResponse(
        source=source,
        path=path,
        resource_type=result.resource_type,
        url=result.url,
        signed=result.is_signed,
        object_key=result.object_key,
        expires_at=result.expires_at,
    )
