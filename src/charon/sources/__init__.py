"""Sources: map dataset path parts onto fetchable locations.

- base.py: Source, Dataset, ResourceLocator and the shared naming rule
- static.py: public static hosts (live, staging)
- community.py: datasets in third-party GitHub repositories
- private.py: access-controlled object-store tenants
- storage.py: object-store contract and the boto3 implementation
- listing.py: injected listings for the static hosts
- tenants.py: tenant configuration
- registry.py: the name -> Source registry
"""

from charon.sources.base import (
    Dataset,
    ResourceLocator,
    ResourceType,
    Source,
    user_groups,
)
from charon.sources.community import CommunityDataset, CommunitySource
from charon.sources.errors import (
    BackendUnavailableError,
    CharonError,
    InvalidPathError,
    NoResourcePathError,
    SourceContractError,
)
from charon.sources.listing import ListingSnapshot
from charon.sources.private import (
    GroupScopedSource,
    InrbDrcSource,
    PrivateStoreDataset,
    PrivateStoreSource,
)
from charon.sources.registry import SourceRegistry, build_registry
from charon.sources.static import LiveSource, StagingSource, StaticHostSource
from charon.sources.storage import ObjectStore, S3ObjectStore

__all__ = [
    "Dataset",
    "ResourceLocator",
    "ResourceType",
    "Source",
    "user_groups",
    "CommunityDataset",
    "CommunitySource",
    "BackendUnavailableError",
    "CharonError",
    "InvalidPathError",
    "NoResourcePathError",
    "SourceContractError",
    "ListingSnapshot",
    "GroupScopedSource",
    "InrbDrcSource",
    "PrivateStoreDataset",
    "PrivateStoreSource",
    "SourceRegistry",
    "build_registry",
    "LiveSource",
    "StagingSource",
    "StaticHostSource",
    "ObjectStore",
    "S3ObjectStore",
]
