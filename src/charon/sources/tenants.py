"""Private tenant configuration.

Tenants can be declared in a YAML file (CHARON_TENANTS_PATH):

    tenants:
      inrb-drc:
        bucket: nextstrain-inrb
        group: inrb
      another-lab:
        bucket: another-lab-data
        group: another-lab

Design assumptions:
- Tenant names share the request-path namespace with built-in sources, so
  "live", "staging" and "community" are rejected
- Every tenant requires bucket and group; there is no default access rule
- Without a file, the only tenant is inrb-drc
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from charon.sources.errors import TenantConfigError

logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset({"live", "staging", "community"})
_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")


@dataclass(frozen=True)
class TenantConfig:
    """One private tenant: a bucket and the group allowed to read it."""

    name: str
    bucket: str
    group: str

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "TenantConfig":
        """Create TenantConfig from a tenants file entry."""
        if not _NAME_PATTERN.match(name):
            raise TenantConfigError(
                "Tenant names must be lowercase letters, digits and dashes", name
            )
        if name in RESERVED_NAMES:
            raise TenantConfigError("Name is reserved for a built-in source", name)

        bucket = data.get("bucket", "")
        group = data.get("group", "")
        if not bucket:
            raise TenantConfigError("Missing required field: bucket", name)
        if not group:
            raise TenantConfigError("Missing required field: group", name)

        return cls(name=name, bucket=str(bucket), group=str(group))


DEFAULT_TENANTS = (TenantConfig(name="inrb-drc", bucket="nextstrain-inrb", group="inrb"),)


def load_tenants(path: Path | str) -> list[TenantConfig]:
    """Load tenant definitions from YAML, in file order.

    Raises:
        FileNotFoundError: If the file does not exist
        TenantConfigError: If the file or any entry is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Tenants file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    if not isinstance(raw_data, dict) or not isinstance(raw_data.get("tenants"), dict):
        raise TenantConfigError("Tenants file must contain a 'tenants' mapping")

    tenants = []
    for name, value in raw_data["tenants"].items():
        if not isinstance(value, dict):
            raise TenantConfigError("Tenant entry must be a mapping", str(name))
        tenants.append(TenantConfig.from_dict(str(name), value))

    logger.info(f"Loaded {len(tenants)} tenants from {path}")
    return tenants
