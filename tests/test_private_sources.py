"""Tests for private object-store sources.

Tests:
- Group-based access rule
- Bucket listing -> dataset requests
- Signed locators (fresh per call, never cached)
- Backend failures and timeouts
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from charon.sources.base import ResourceType
from charon.sources.errors import BackendUnavailableError
from charon.sources.private import (
    TREE_SUFFIX,
    GroupScopedSource,
    InrbDrcSource,
    PrivateStoreDataset,
    datasets_from_keys,
)


# ============================================================================
# Access Rule Tests
# ============================================================================


class TestAccessRule:
    """Test visible_to_user for group-scoped tenants."""

    @pytest.fixture
    def inrb(self, fake_store):
        return InrbDrcSource(fake_store)

    @pytest.fixture
    def other_lab(self, fake_store):
        return GroupScopedSource("other-lab", "other-lab-data", "other", fake_store)

    def test_no_user(self, inrb):
        assert inrb.visible_to_user(None) is False

    def test_user_without_groups(self, inrb):
        assert inrb.visible_to_user({}) is False

    def test_user_with_empty_groups(self, inrb):
        assert inrb.visible_to_user({"groups": []}) is False

    def test_member(self, inrb, inrb_user):
        assert inrb.visible_to_user(inrb_user) is True

    def test_member_of_other_tenant(self, other_lab, inrb_user):
        assert other_lab.visible_to_user(inrb_user) is False

    def test_group_name_is_not_substring_matched(self, inrb):
        assert inrb.visible_to_user({"groups": ["inrb-staff"]}) is False

    def test_malformed_groups_deny_without_error(self, inrb):
        assert inrb.visible_to_user({"groups": True}) is False
        assert inrb.visible_to_user({"groups": "inrbx"}) is False

    def test_inrb_defaults(self, inrb):
        assert inrb.name == "inrb-drc"
        assert inrb.bucket == "nextstrain-inrb"
        assert inrb.group == "inrb"


# ============================================================================
# Listing Tests
# ============================================================================


class TestListing:
    """Test bucket keys -> dataset requests."""

    def test_keys_to_requests(self):
        keys = ["a_b_tree.json", "a_b_meta.json", "c_tree.json"]
        assert datasets_from_keys("inrb-drc", keys) == [
            {"request": "inrb-drc/a/b"},
            {"request": "inrb-drc/c"},
        ]

    def test_non_tree_keys_ignored(self):
        keys = ["a_meta.json", "a_root-sequence.json", "README.md"]
        assert datasets_from_keys("inrb-drc", keys) == []

    def test_bare_suffix_ignored(self):
        assert datasets_from_keys("inrb-drc", [TREE_SUFFIX]) == []

    def test_results_sorted_and_unique(self):
        keys = ["z_tree.json", "a_tree.json", "a_tree.json"]
        assert datasets_from_keys("x", keys) == [
            {"request": "x/a"},
            {"request": "x/z"},
        ]

    @pytest.mark.asyncio
    async def test_available_datasets(self, fake_store):
        source = InrbDrcSource(fake_store)

        datasets = await source.available_datasets()

        assert datasets == [
            {"request": "inrb-drc/ebola"},
            {"request": "inrb-drc/ebola/2019"},
        ]
        assert fake_store.list_calls == ["nextstrain-inrb"]

    @pytest.mark.asyncio
    async def test_empty_bucket(self, store_factory):
        source = InrbDrcSource(store_factory())
        assert await source.available_datasets() == []

    @pytest.mark.asyncio
    async def test_narratives_empty(self, fake_store):
        assert await InrbDrcSource(fake_store).available_narratives() == []


# ============================================================================
# Signing Tests
# ============================================================================


class TestSigning:
    """Test signed locators."""

    def test_dataset_type(self, fake_store):
        dataset = InrbDrcSource(fake_store).dataset(["ebola"])
        assert isinstance(dataset, PrivateStoreDataset)

    @pytest.mark.asyncio
    async def test_locate_signs_exact_key(self, fake_store):
        dataset = InrbDrcSource(fake_store).dataset(["ebola", "2019"])

        locator = await dataset.locate(ResourceType.TREE)

        assert locator.object_key == "ebola_2019_tree.json"
        assert locator.is_signed
        assert fake_store.sign_calls == [
            ("nextstrain-inrb", "ebola_2019_tree.json", "get_object", 900)
        ]

    @pytest.mark.asyncio
    async def test_repeated_calls_sign_afresh(self, fake_store):
        dataset = InrbDrcSource(fake_store).dataset(["ebola"])

        first = await dataset.locate(ResourceType.META)
        second = await dataset.locate(ResourceType.META)

        assert first.url != second.url
        assert first.object_key == second.object_key == "ebola_meta.json"
        assert len(fake_store.sign_calls) == 2

    @pytest.mark.asyncio
    async def test_locate_matches_url_for(self, fake_store):
        """Both signing paths sign the same key with the same expiry."""
        dataset = InrbDrcSource(fake_store).dataset(["ebola"])

        dataset.url_for(ResourceType.TREE)
        await dataset.locate(ResourceType.TREE)

        assert fake_store.sign_calls[0] == fake_store.sign_calls[1]

    @pytest.mark.asyncio
    async def test_expiry(self, store_factory):
        store = store_factory()
        source = InrbDrcSource(store, signed_url_expiry=60)
        before = datetime.now(timezone.utc)

        locator = await source.dataset(["ebola"]).locate(ResourceType.TREE)

        assert store.sign_calls[0][3] == 60
        assert before + timedelta(seconds=60) <= locator.expires_at
        assert locator.expires_at <= datetime.now(timezone.utc) + timedelta(seconds=60)

    def test_url_for_signs_synchronously(self, fake_store):
        dataset = InrbDrcSource(fake_store).dataset(["ebola"])

        url = dataset.url_for(ResourceType.TREE)

        assert "ebola_tree.json" in url
        assert "X-Amz-Signature=" in url


# ============================================================================
# Failure Tests
# ============================================================================


class TestBackendFailures:
    """Test that store failures surface as BackendUnavailableError."""

    @pytest.mark.asyncio
    async def test_listing_failure(self, store_factory):
        source = InrbDrcSource(store_factory(fail=ConnectionError("connection reset")))

        with pytest.raises(BackendUnavailableError) as exc_info:
            await source.available_datasets()

        error = exc_info.value
        assert error.source_name == "inrb-drc"
        assert error.operation == "list_objects"
        assert "connection reset" in str(error)
        assert isinstance(error.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_signing_failure(self, store_factory):
        source = InrbDrcSource(store_factory(fail=RuntimeError("no credentials")))

        with pytest.raises(BackendUnavailableError) as exc_info:
            await source.dataset(["ebola"]).locate(ResourceType.TREE)

        assert exc_info.value.operation == "sign_url"

    @pytest.mark.asyncio
    async def test_listing_timeout(self, store_factory):
        source = InrbDrcSource(store_factory(delay=0.3), timeout=0.05)

        with pytest.raises(BackendUnavailableError) as exc_info:
            await source.available_datasets()

        assert "timed out" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
