"""Shared fixtures: an in-memory object store and a registry built on it."""

from __future__ import annotations

import itertools
import time

import pytest

from charon.config import Settings
from charon.resolver import Resolver
from charon.sources.listing import ListingSnapshot
from charon.sources.registry import build_registry


class FakeObjectStore:
    """In-memory ObjectStore.

    Every signed URL carries a fresh signature so repeated calls differ.
    """

    def __init__(self, buckets=None, fail=None, delay=0.0):
        self.buckets = buckets or {}
        self.fail = fail
        self.delay = delay
        self.list_calls: list[str] = []
        self.sign_calls: list[tuple] = []
        self._counter = itertools.count(1)

    def list_keys(self, bucket: str) -> list[str]:
        self.list_calls.append(bucket)
        if self.delay:
            time.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        return list(self.buckets.get(bucket, []))

    def signed_url(self, bucket, key, operation="get_object", expires_in=900):
        self.sign_calls.append((bucket, key, operation, expires_in))
        if self.fail is not None:
            raise self.fail
        signature = f"sig{next(self._counter):04d}"
        return (
            f"https://{bucket}.s3.amazonaws.com/{key}"
            f"?X-Amz-Expires={expires_in}&X-Amz-Signature={signature}"
        )


@pytest.fixture
def fake_store():
    return FakeObjectStore(
        buckets={
            "nextstrain-inrb": [
                "ebola_tree.json",
                "ebola_meta.json",
                "ebola_2019_tree.json",
                "ebola_2019_meta.json",
                "ebola_2019_tip-frequencies.json",
            ]
        }
    )


@pytest.fixture
def listings():
    return ListingSnapshot.from_dict(
        {
            "datasets": {
                "live": [{"request": "live/zika"}, {"request": "live/flu/seasonal/h3n2"}],
                "staging": [{"request": "staging/ncov"}],
            },
            "narratives": {"live": [{"request": "narratives/ncov/sit-rep"}]},
        }
    )


@pytest.fixture
def registry(fake_store, listings):
    return build_registry(Settings(), store=fake_store, listings=listings)


@pytest.fixture
def resolver(registry):
    return Resolver(registry)


@pytest.fixture
def inrb_user():
    return {"groups": ["inrb"]}


@pytest.fixture
def store_factory():
    """Build FakeObjectStore instances with custom contents or failures."""
    return FakeObjectStore
