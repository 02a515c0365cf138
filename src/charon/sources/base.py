"""Source and Dataset base classes.

These map an ordered list of dataset path parts onto the location of one
resource file. Source selection and request-path aliasing
(/flu -> flu/seasonal/h3n2/ha/3y) happen before anything here is called.

Naming rule shared by every backend:
- a dataset's "base parts" are joined with "_"
- the resource type is appended as "_<type>.json"

So ["zika"] with type "tree" names "zika_tree.json", and each Source decides
where that name lives.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import urljoin

from charon.sources.errors import (
    InvalidPathError,
    NoResourcePathError,
    SourceContractError,
)

# RFC 3986 "unreserved" characters; anything else would need escaping
_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9._~-]+$")


class ResourceType(str, Enum):
    """Resource files that make up a dataset."""

    TREE = "tree"
    META = "meta"
    ROOT_SEQUENCE = "root-sequence"
    TIP_FREQUENCIES = "tip-frequencies"


def resource_type_name(resource_type: ResourceType | str) -> str:
    """Return the filename tag for a resource type.

    Known types come in as ResourceType; other tags are accepted as long as
    they are URL-safe.
    """
    if isinstance(resource_type, ResourceType):
        return resource_type.value
    name = str(resource_type)
    if not _SEGMENT_PATTERN.match(name):
        raise InvalidPathError(f"Invalid resource type: {name!r}")
    return name


def validate_path_parts(path_parts: Iterable[str]) -> tuple[str, ...]:
    """Check path parts and return them as an immutable tuple.

    Raises:
        NoResourcePathError: If there are no parts at all
        InvalidPathError: If the parts are not a sequence of strings, or a part
            is empty, a dot segment, or not URL-safe
    """
    # a bare string would otherwise split into characters
    if isinstance(path_parts, (str, bytes)) or not isinstance(path_parts, Iterable):
        raise InvalidPathError(
            f"Path parts must be a sequence of strings, got {type(path_parts).__name__}"
        )
    parts = tuple(path_parts)
    if not parts:
        raise NoResourcePathError()
    for part in parts:
        if not isinstance(part, str) or not _SEGMENT_PATTERN.match(part):
            raise InvalidPathError(f"Invalid path part: {part!r}")
        if part in (".", ".."):
            raise InvalidPathError(f"Dot segments are not allowed: {part!r}")
    return parts


def user_groups(user: Any) -> frozenset[str]:
    """Extract group memberships from an opaque user object.

    Accepts None, a mapping with a "groups" key, or an object with a
    ``groups`` attribute. Anything missing along the way means no groups.
    """
    if user is None:
        return frozenset()
    if isinstance(user, Mapping):
        groups = user.get("groups")
    else:
        groups = getattr(user, "groups", None)
    if not groups:
        return frozenset()
    if isinstance(groups, str):
        return frozenset([groups])
    if not isinstance(groups, Iterable):
        return frozenset()
    return frozenset(str(g) for g in groups)


@dataclass(frozen=True)
class ResourceLocator:
    """A resolved location for one resource type of a dataset.

    Signed locators carry an expiry and must not be reused past it.
    """

    resource_type: str
    url: str
    object_key: str | None = None
    expires_at: datetime | None = None

    @property
    def is_signed(self) -> bool:
        """True if the URL grants temporary access to a private object."""
        return self.expires_at is not None

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "resource_type": self.resource_type,
            "url": self.url,
            "object_key": self.object_key,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "signed": self.is_signed,
        }


class Dataset:
    """A dataset path within a source."""

    def __init__(self, source: "Source", path_parts: Iterable[str]):
        self.source = source
        self._path_parts = validate_path_parts(path_parts)

    @property
    def path_parts(self) -> tuple[str, ...]:
        return self._path_parts

    @property
    def base_parts(self) -> tuple[str, ...]:
        """Parts that make up the file basename (all of them by default)."""
        return self._path_parts

    def base_name_for(self, resource_type: ResourceType | str) -> str:
        base_name = "_".join(self.base_parts)
        return f"{base_name}_{resource_type_name(resource_type)}.json"

    def url_for(self, resource_type: ResourceType | str) -> str:
        return urljoin(self.source.base_url, self.base_name_for(resource_type))

    async def locate(self, resource_type: ResourceType | str) -> ResourceLocator:
        """Resolve a resource type to a locator.

        Plain URL construction never suspends; backends that need network
        access to produce a URL override this.
        """
        return ResourceLocator(
            resource_type=resource_type_name(resource_type),
            url=self.url_for(resource_type),
        )

    def __repr__(self) -> str:
        path = "/".join(self._path_parts)
        return f"{type(self).__name__}({self.source.name!r}, {path!r})"


class Source(ABC):
    """A backend that hosts datasets and narratives.

    Subclasses must provide ``name``. Static hosts also provide ``base_url``;
    everything else overrides ``dataset()`` with a Dataset subclass that
    builds its own URLs.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique source identifier used in request paths."""

    @property
    def base_url(self) -> str:
        raise SourceContractError(
            f"Source '{self.name}' has no base URL; "
            "its datasets must construct their own locations"
        )

    def dataset(self, path_parts: Iterable[str]) -> Dataset:
        return Dataset(self, path_parts)

    def visible_to_user(self, user: Any) -> bool:
        return True

    async def available_datasets(self) -> list[dict[str, str]]:
        return []

    async def available_narratives(self) -> list[dict[str, str]]:
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
