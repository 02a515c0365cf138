"""Read-only snapshot of available datasets and narratives.

The public static hosts cannot be listed directly, so an external refresh job
walks them and writes a JSON file:

    {
      "datasets":   {"live": [{"request": "live/zika"}, ...], ...},
      "narratives": {"live": [{"request": "narratives/ncov"}, ...], ...}
    }

A snapshot is loaded once and handed to the sources that read it. Refreshing
means building a new snapshot and a new registry, never mutating this one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

logger = logging.getLogger(__name__)

_SECTIONS = ("datasets", "narratives")


def _freeze(section: Mapping) -> Mapping[str, tuple[dict, ...]]:
    frozen = {}
    for source_name, entries in section.items():
        if not isinstance(entries, list):
            raise ValueError(
                f"Listing for source '{source_name}' must be a list, "
                f"got {type(entries).__name__}"
            )
        items = []
        for entry in entries:
            if not isinstance(entry, dict) or "request" not in entry:
                raise ValueError(
                    f"Listing entry for source '{source_name}' "
                    f"must be an object with a 'request' field: {entry!r}"
                )
            items.append(dict(entry))
        frozen[str(source_name)] = tuple(items)
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class ListingSnapshot:
    """Available datasets and narratives keyed by source name."""

    datasets: Mapping[str, tuple[dict, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    narratives: Mapping[str, tuple[dict, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def empty(cls) -> "ListingSnapshot":
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping) -> "ListingSnapshot":
        """Create a snapshot from the refresh job's JSON structure."""
        sections = {}
        for section in _SECTIONS:
            raw = data.get(section) or {}
            if not isinstance(raw, Mapping):
                raise ValueError(f"'{section}' must be a mapping of source name to list")
            sections[section] = _freeze(raw)
        return cls(**sections)

    @classmethod
    def load(cls, path: Path | str) -> "ListingSnapshot":
        """Load a snapshot from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a valid listing
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Listing snapshot not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw_data = json.load(f)

        if not isinstance(raw_data, dict):
            raise ValueError("Listing snapshot must be a JSON object")

        snapshot = cls.from_dict(raw_data)
        logger.info(
            f"Loaded listing snapshot from {path} "
            f"({sum(len(v) for v in snapshot.datasets.values())} datasets, "
            f"{sum(len(v) for v in snapshot.narratives.values())} narratives)"
        )
        return snapshot

    def datasets_for(self, source_name: str) -> list[dict]:
        return [dict(entry) for entry in self.datasets.get(source_name, ())]

    def narratives_for(self, source_name: str) -> list[dict]:
        return [dict(entry) for entry in self.narratives.get(source_name, ())]
