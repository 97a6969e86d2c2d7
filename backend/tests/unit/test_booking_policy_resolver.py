# backend/tests/unit/test_booking_policy_resolver.py
"""
Unit tests for BookingPolicyResolver and the policy caches.

A tenant policy is either applied whole or replaced by the complete
defaults; it is never partially applied.
"""

import json
import logging
from unittest.mock import Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import Settings
from app.core.constants import DEFAULT_BOOKING_POLICY
from app.core.exceptions import NotFoundException, RepositoryException, ValidationException
from app.schemas.booking_policy import BookingPolicy, BookingPolicyUpdate
from app.services import policy_cache as policy_cache_module
from app.services.booking_policy_resolver import BookingPolicyResolver
from app.services.policy_cache import InMemoryPolicyCache, RedisPolicyCache, create_policy_cache
from tests._utils.scheduling import ORG, FakeOrganizationRepository, policy_document

pytestmark = pytest.mark.unit


def _resolver(documents=None, cache=None):
    repo = FakeOrganizationRepository(documents)
    return BookingPolicyResolver(repo, cache or InMemoryPolicyCache()), repo


class TestDefaults:
    def test_default_policy_values(self):
        policy = BookingPolicy.defaults()

        assert policy.advance_booking_hours == 4
        assert policy.max_advance_booking_days == 90
        assert policy.allow_same_day_booking is True
        assert policy.booking_window_start == "08:00"
        assert policy.booking_window_end == "18:00"
        assert policy.weekend_booking_enabled is False
        assert policy.cancellation_deadline_hours == 2
        assert policy.reschedule_deadline_hours == 2

    def test_missing_organization_falls_back_without_caching(self, caplog):
        resolver, repo = _resolver()

        with caplog.at_level(logging.WARNING):
            first = resolver.get_booking_settings(ORG)
            second = resolver.get_booking_settings(ORG)

        assert first == BookingPolicy.defaults()
        assert second == BookingPolicy.defaults()
        assert repo.reads == 2
        assert "Using default booking policy" in caplog.text

    def test_fetch_failure_falls_back_to_defaults(self):
        resolver, repo = _resolver({ORG: policy_document(advance_booking_hours=6)})
        repo.error = RepositoryException("connection refused")

        assert resolver.get_booking_settings(ORG) == BookingPolicy.defaults()

        # A repaired backend is picked up on the next call
        repo.error = None
        assert resolver.get_booking_settings(ORG).advance_booking_hours == 6


class TestTenantPolicy:
    def test_valid_document_is_applied_and_cached(self):
        resolver, repo = _resolver({ORG: policy_document(advance_booking_hours=6)})

        first = resolver.get_booking_settings(ORG)
        second = resolver.get_booking_settings(ORG)

        assert first.advance_booking_hours == 6
        assert second is first
        assert repo.reads == 1

    def test_unrelated_keys_in_document_are_ignored(self):
        document = policy_document(weekend_booking_enabled=True)
        document["reminder_template"] = "default"
        resolver, _ = _resolver({ORG: document})

        assert resolver.get_booking_settings(ORG).weekend_booking_enabled is True

    def test_fractional_advance_hours_are_accepted(self):
        resolver, _ = _resolver({ORG: policy_document(advance_booking_hours=1.5)})

        assert resolver.get_booking_settings(ORG).advance_booking_hours == 1.5

    @pytest.mark.parametrize(
        "overrides",
        [
            {"advance_booking_hours": "6"},
            {"advance_booking_hours": 100},
            {"advance_booking_hours": -1},
            {"max_advance_booking_days": 0},
            {"max_advance_booking_days": 30.5},
            {"allow_same_day_booking": "false"},
            {"weekend_booking_enabled": 1},
            {"booking_window_start": "8:00"},
            {"booking_window_start": "18:00", "booking_window_end": "08:00"},
            {"booking_window_start": "10:00", "booking_window_end": "10:00"},
            {"cancellation_deadline_hours": 500},
        ],
    )
    def test_malformed_document_falls_back_to_complete_defaults(self, overrides):
        document = policy_document(advance_booking_hours=6, weekend_booking_enabled=True)
        document.update(overrides)
        resolver, repo = _resolver({ORG: document})

        policy = resolver.get_booking_settings(ORG)

        # Valid fields of the broken document are not applied either
        assert policy == BookingPolicy.defaults()
        resolver.get_booking_settings(ORG)
        assert repo.reads == 2

    def test_missing_field_falls_back_to_complete_defaults(self):
        document = policy_document(advance_booking_hours=6)
        del document["weekend_booking_enabled"]
        resolver, _ = _resolver({ORG: document})

        policy = resolver.get_booking_settings(ORG)

        assert policy.advance_booking_hours == 4

    def test_null_field_falls_back_to_complete_defaults(self):
        resolver, _ = _resolver({ORG: policy_document(max_advance_booking_days=None)})

        assert resolver.get_booking_settings(ORG) == BookingPolicy.defaults()

    def test_non_mapping_document_falls_back(self):
        resolver, _ = _resolver({ORG: ["advance_booking_hours", 6]})

        assert resolver.get_booking_settings(ORG) == BookingPolicy.defaults()


class TestInvalidation:
    def test_clear_cache_for_one_organization(self):
        resolver, repo = _resolver(
            {ORG: policy_document(advance_booking_hours=6), "org-2": policy_document()}
        )
        resolver.get_booking_settings(ORG)
        resolver.get_booking_settings("org-2")

        repo.documents[ORG] = policy_document(advance_booking_hours=8)
        assert resolver.get_booking_settings(ORG).advance_booking_hours == 6

        assert resolver.clear_cache(ORG) == 1
        assert resolver.get_booking_settings(ORG).advance_booking_hours == 8
        assert repo.reads == 3

    def test_clear_cache_for_all_organizations(self):
        resolver, _ = _resolver({ORG: policy_document(), "org-2": policy_document()})
        resolver.get_booking_settings(ORG)
        resolver.get_booking_settings("org-2")

        assert resolver.clear_cache() == 2
        assert resolver.clear_cache(ORG) == 0


class TestUpdateBookingSettings:
    def test_partial_update_is_merged_persisted_and_invalidated(self):
        resolver, repo = _resolver({ORG: policy_document()})
        resolver.get_booking_settings(ORG)

        updated = resolver.update_booking_settings(
            ORG, BookingPolicyUpdate(advance_booking_hours=8, weekend_booking_enabled=True)
        )

        assert updated.advance_booking_hours == 8
        assert updated.weekend_booking_enabled is True
        assert updated.booking_window_start == DEFAULT_BOOKING_POLICY["booking_window_start"]
        assert repo.saved[ORG]["advance_booking_hours"] == 8
        assert resolver.get_booking_settings(ORG).advance_booking_hours == 8

    def test_update_accepts_plain_dict(self):
        resolver, _ = _resolver({ORG: policy_document()})

        updated = resolver.update_booking_settings(ORG, {"max_advance_booking_days": 30})

        assert updated.max_advance_booking_days == 30

    def test_invalid_merged_policy_is_rejected(self):
        resolver, repo = _resolver({ORG: policy_document()})

        with pytest.raises(ValidationException) as exc_info:
            resolver.update_booking_settings(
                ORG, {"booking_window_start": "19:00", "booking_window_end": "09:00"}
            )

        assert exc_info.value.code == "INVALID_BOOKING_SETTINGS"
        assert exc_info.value.details["errors"]
        assert ORG not in repo.saved

    def test_update_of_unknown_organization_raises_not_found(self):
        resolver, _ = _resolver()

        with pytest.raises(NotFoundException):
            resolver.update_booking_settings("missing", {"advance_booking_hours": 2})

    def test_update_rejects_unknown_fields(self):
        resolver, _ = _resolver({ORG: policy_document()})

        with pytest.raises(ValueError):
            resolver.update_booking_settings(ORG, {"surcharge": 10})


class TestInMemoryPolicyCache:
    def test_get_set_invalidate_clear(self):
        cache = InMemoryPolicyCache()
        policy = BookingPolicy.defaults()

        assert cache.get(ORG) is None
        cache.set(ORG, policy)
        assert cache.get(ORG) is policy
        assert len(cache) == 1
        assert cache.invalidate(ORG) is True
        assert cache.invalidate(ORG) is False
        cache.set(ORG, policy)
        cache.set("org-2", policy)
        assert cache.clear() == 2
        assert len(cache) == 0


class TestRedisPolicyCache:
    def test_round_trip_through_json(self):
        client = Mock()
        cache = RedisPolicyCache(client, prefix="booking_policy")
        policy = BookingPolicy.model_validate(policy_document(advance_booking_hours=6))

        cache.set(ORG, policy)
        key, payload = client.set.call_args.args
        assert key == f"booking_policy:{ORG}"
        assert json.loads(payload)["advance_booking_hours"] == 6

        client.get.return_value = payload
        assert cache.get(ORG) == policy

    def test_miss_returns_none(self):
        client = Mock()
        client.get.return_value = None

        assert RedisPolicyCache(client).get(ORG) is None

    def test_redis_errors_degrade_to_misses(self):
        client = Mock()
        client.get.side_effect = RedisConnectionError("down")
        client.delete.side_effect = RedisConnectionError("down")
        cache = RedisPolicyCache(client)

        assert cache.get(ORG) is None
        assert cache.invalidate(ORG) is False

    def test_unreadable_entry_is_discarded(self):
        client = Mock()
        client.get.return_value = '{"advance_booking_hours": "x"}'
        cache = RedisPolicyCache(client)

        assert cache.get(ORG) is None
        client.delete.assert_called_once_with(f"booking_policy:{ORG}")

    def test_clear_scans_prefix(self):
        client = Mock()
        client.scan_iter.return_value = iter(["booking_policy:a", "booking_policy:b"])
        client.delete.return_value = 1

        assert RedisPolicyCache(client).clear() == 2
        client.scan_iter.assert_called_once_with(match="booking_policy:*")

    def test_resolver_works_over_redis_cache(self):
        stored = {}
        client = Mock()
        client.get.side_effect = lambda key: stored.get(key)
        client.set.side_effect = lambda key, value: stored.__setitem__(key, value)
        resolver, repo = _resolver(
            {ORG: policy_document(advance_booking_hours=6)}, cache=RedisPolicyCache(client)
        )

        assert resolver.get_booking_settings(ORG).advance_booking_hours == 6
        assert resolver.get_booking_settings(ORG).advance_booking_hours == 6
        assert repo.reads == 1


class TestCreatePolicyCache:
    def test_memory_backend(self):
        cache = create_policy_cache(Settings(policy_cache_backend="memory"))
        assert isinstance(cache, InMemoryPolicyCache)

    def test_redis_backend(self, monkeypatch):
        client = Mock()
        from_url = Mock(return_value=client)
        monkeypatch.setattr(policy_cache_module.redis.Redis, "from_url", from_url)

        cache = create_policy_cache(
            Settings(policy_cache_backend="redis", redis_url="redis://cache:6379/2")
        )

        assert isinstance(cache, RedisPolicyCache)
        assert cache.client is client
        from_url.assert_called_once_with("redis://cache:6379/2", decode_responses=True)
