"""Community datasets hosted in third-party GitHub repositories.

Request paths look like community/<owner>/<repo>/<rest...>. The owner only
addresses the repository; repository files embed their own repo name but not
the owning account, so the basename is built from <repo>/<rest...>.
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urljoin

from charon.sources.base import Dataset, ResourceType, Source
from charon.sources.errors import InvalidPathError

DEFAULT_RAW_CONTENT_URL = "https://raw.githubusercontent.com/"
DEFAULT_BRANCH = "master"


class CommunitySource(Source):
    def __init__(
        self,
        raw_content_url: str = DEFAULT_RAW_CONTENT_URL,
        branch: str = DEFAULT_BRANCH,
    ):
        self.raw_content_url = (
            raw_content_url if raw_content_url.endswith("/") else raw_content_url + "/"
        )
        self.branch = branch

    @property
    def name(self) -> str:
        return "community"

    def dataset(self, path_parts: Iterable[str]) -> "CommunityDataset":
        return CommunityDataset(self, path_parts)


class CommunityDataset(Dataset):
    def __init__(self, source: CommunitySource, path_parts: Iterable[str]):
        super().__init__(source, path_parts)
        if len(self.path_parts) < 2:
            raise InvalidPathError(
                "Community datasets need at least an owner and a repository, "
                f"got {'/'.join(self.path_parts)!r}"
            )

    @property
    def owner(self) -> str:
        return self.path_parts[0]

    @property
    def repo(self) -> str:
        return self.path_parts[1]

    @property
    def base_parts(self) -> tuple[str, ...]:
        # Drop the GitHub user/org; the repo name stays in the basename
        return self.path_parts[1:]

    @property
    def repo_base_url(self) -> str:
        return urljoin(
            self.source.raw_content_url,
            f"{self.owner}/{self.repo}/{self.source.branch}/auspice/",
        )

    def url_for(self, resource_type: ResourceType | str) -> str:
        return urljoin(self.repo_base_url, self.base_name_for(resource_type))
