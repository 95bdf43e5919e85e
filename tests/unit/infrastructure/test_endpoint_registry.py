"""
Unit tests for EndpointRegistry.

Usage:
    pytest tests/unit/infrastructure/test_endpoint_registry.py
"""

import threading
from typing import Optional

import pytest

from helpers import DEFAULT_1, DEFAULT_2, USER_RPC

from vigie.config import RegistryConfig
from vigie.domain.entities import EndpointHealth
from vigie.domain.exceptions import PersistenceError, UnknownEndpointError
from vigie.infrastructure.persistence import InMemoryEndpointStore
from vigie.infrastructure.registry import EndpointRegistry


class BrokenStore:
    """Store whose backend is always down."""

    def __init__(self):
        self.reads = 0
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        self.reads += 1
        raise PersistenceError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        self.writes += 1
        raise PersistenceError("storage unavailable")


class CountingStore(InMemoryEndpointStore):
    """In-memory store that counts writes."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = 0

    def set(self, key: str, value: str) -> None:
        self.writes += 1
        super().set(key, value)


class BlockingStore(InMemoryEndpointStore):
    """In-memory store flagged as doing network I/O."""

    blocking = True

    def __init__(self):
        super().__init__()
        self.writer_threads = []

    def set(self, key: str, value: str) -> None:
        self.writer_threads.append(threading.current_thread().name)
        super().set(key, value)


class TestEndpointRegistry:
    """Unit tests for EndpointRegistry."""

    # ================================================================
    # Helper Methods
    # ================================================================

    @staticmethod
    def fail(registry: EndpointRegistry, url: str, times: int) -> None:
        for _ in range(times):
            registry.report_failure(url)

    @pytest.fixture
    def user_registry(self, candidates, store, registry_config, reporter):
        return EndpointRegistry(
            candidates,
            user_endpoint=USER_RPC,
            store=store,
            config=registry_config,
            reporter=reporter,
        )

    # ================================================================
    # Construction
    # ================================================================

    def test_priority_order(self, user_registry):
        """Test user endpoint comes first, then candidates."""
        assert user_registry.urls == [USER_RPC, DEFAULT_1, DEFAULT_2]
        assert user_registry.get(USER_RPC).pinned
        assert not user_registry.get(DEFAULT_1).pinned

    def test_persisted_endpoint_before_candidates(self, candidates, reporter):
        """Test last-known-good URL is tried before configured candidates."""
        store = InMemoryEndpointStore({"RPC_ADDRESS": DEFAULT_2})

        registry = EndpointRegistry(candidates, store=store, reporter=reporter)

        assert registry.urls == [DEFAULT_2, DEFAULT_1]
        assert registry.last_known_good() == DEFAULT_2

    def test_duplicates_keep_first_position(self, reporter):
        """Test duplicate URLs are managed once."""
        registry = EndpointRegistry(
            [DEFAULT_1, DEFAULT_2 + "/", DEFAULT_1],
            user_endpoint=DEFAULT_2,
            reporter=reporter,
        )

        assert registry.urls == [DEFAULT_2, DEFAULT_1]

    def test_invalid_persisted_url_ignored(self, candidates, reporter):
        """Test a corrupt stored value does not break startup."""
        store = InMemoryEndpointStore({"RPC_ADDRESS": "not-a-url"})

        registry = EndpointRegistry(candidates, store=store, reporter=reporter)

        assert registry.urls == [DEFAULT_1, DEFAULT_2]

    def test_requires_an_endpoint(self, reporter):
        """Test empty configuration is rejected."""
        with pytest.raises(ValueError):
            EndpointRegistry([], reporter=reporter)

    def test_initial_state_is_healthy(self, registry):
        """Test every endpoint starts HEALTHY and the first is active."""
        assert all(e.state == EndpointHealth.HEALTHY for e in registry.endpoints)
        assert registry.active_endpoint.url == DEFAULT_1

    # ================================================================
    # Selection
    # ================================================================

    def test_select_first_healthy(self, registry):
        """Test selection returns highest-priority healthy endpoint."""
        assert registry.select_endpoint().url == DEFAULT_1

    def test_user_degraded_then_default_selected(self, user_registry):
        """Test three user failures degrade it and a healthy default wins."""
        self.fail(user_registry, USER_RPC, 3)

        assert user_registry.get(USER_RPC).state == EndpointHealth.DEGRADED
        assert user_registry.select_endpoint().url == DEFAULT_1

        user_registry.report_success(DEFAULT_1)

        assert user_registry.select_endpoint().url == DEFAULT_1
        assert user_registry.get(DEFAULT_1).state == EndpointHealth.HEALTHY

    def test_degraded_still_selectable(self, reporter, registry_config):
        """Test a degraded endpoint is used when nothing healthy is left."""
        registry = EndpointRegistry(
            [DEFAULT_1], config=registry_config, reporter=reporter
        )
        self.fail(registry, DEFAULT_1, 3)

        selected = registry.select_endpoint()

        assert selected.url == DEFAULT_1
        assert selected.state == EndpointHealth.DEGRADED

    def test_unavailable_never_selected(self, registry):
        """Test an unavailable endpoint is skipped while others remain."""
        self.fail(registry, DEFAULT_1, 6)

        assert registry.get(DEFAULT_1).state == EndpointHealth.UNAVAILABLE
        for _ in range(5):
            assert registry.select_endpoint().url == DEFAULT_2

    def test_unavailable_advances_active(self, registry):
        """Test the active index moves past a newly unavailable endpoint."""
        registry.select_endpoint()
        self.fail(registry, DEFAULT_1, 6)

        assert registry.active_endpoint.url == DEFAULT_2

    def test_fail_open_when_all_unavailable(self, registry):
        """Test selection resets every endpoint when all are unavailable."""
        self.fail(registry, DEFAULT_1, 6)
        self.fail(registry, DEFAULT_2, 6)

        selected = registry.select_endpoint()

        assert selected.url == DEFAULT_1
        assert all(e.state == EndpointHealth.HEALTHY for e in registry.endpoints)
        assert all(e.consecutive_failures == 0 for e in registry.endpoints)
        assert registry.get_stats()["fail_open_resets"] == 1

    # ================================================================
    # Outcome reporting
    # ================================================================

    def test_demotion_thresholds(self, registry):
        """Test HEALTHY -> DEGRADED -> UNAVAILABLE at configured counts."""
        states = [registry.report_failure(DEFAULT_1) for _ in range(6)]

        assert states[:2] == [EndpointHealth.HEALTHY] * 2
        assert states[2:5] == [EndpointHealth.DEGRADED] * 3
        assert states[5] == EndpointHealth.UNAVAILABLE

    def test_demotion_never_skips_degraded(self, reporter):
        """Test thresholds of 1 and 2 still pass through DEGRADED."""
        config = RegistryConfig(degraded_threshold=1, unavailable_threshold=2)
        registry = EndpointRegistry(
            [DEFAULT_1, DEFAULT_2], config=config, reporter=reporter
        )

        assert registry.report_failure(DEFAULT_1) == EndpointHealth.DEGRADED
        assert registry.report_failure(DEFAULT_1) == EndpointHealth.UNAVAILABLE

    def test_success_resets_failures(self, registry):
        """Test success clears the consecutive failure counter."""
        self.fail(registry, DEFAULT_1, 2)
        registry.report_success(DEFAULT_1)
        self.fail(registry, DEFAULT_1, 2)

        endpoint = registry.get(DEFAULT_1)
        assert endpoint.state == EndpointHealth.HEALTHY
        assert endpoint.consecutive_failures == 2

    def test_success_restores_degraded(self, registry):
        """Test one success brings a degraded endpoint back."""
        self.fail(registry, DEFAULT_1, 4)

        assert registry.report_success(DEFAULT_1) == EndpointHealth.HEALTHY
        assert registry.get(DEFAULT_1).state == EndpointHealth.HEALTHY

    def test_success_is_idempotent(self, registry):
        """Test repeated success on a healthy endpoint changes nothing."""
        registry.report_success(DEFAULT_1)
        changes = registry.get_stats()["state_changes"]

        registry.report_success(DEFAULT_1)
        registry.report_success(DEFAULT_1)

        assert registry.get_stats()["state_changes"] == changes
        assert registry.get(DEFAULT_1).state == EndpointHealth.HEALTHY

    def test_pinned_endpoint_survives_first_failure(self, reporter, store):
        """Test the user endpoint is not degraded by a single failure."""
        config = RegistryConfig(degraded_threshold=1, unavailable_threshold=4)
        registry = EndpointRegistry(
            [DEFAULT_1],
            user_endpoint=USER_RPC,
            store=store,
            config=config,
            reporter=reporter,
        )

        assert registry.report_failure(USER_RPC) == EndpointHealth.HEALTHY
        assert registry.select_endpoint().url == USER_RPC
        assert registry.report_failure(USER_RPC) == EndpointHealth.DEGRADED

    def test_reporting_accepts_endpoint_objects(self, registry):
        """Test outcomes can be reported with the selected snapshot."""
        endpoint = registry.select_endpoint()

        registry.report_failure(endpoint)

        assert registry.get(DEFAULT_1).consecutive_failures == 1

    def test_unknown_endpoint_ignored(self, registry):
        """Test outcomes for unmanaged URLs are logged and ignored."""
        assert registry.report_failure("https://stranger.example/rpc") is None
        assert registry.report_success("https://stranger.example/rpc") is None
        assert registry.get_stats()["total_failures"] == 0

    def test_get_unknown_raises(self, registry):
        """Test get() rejects unmanaged URLs."""
        with pytest.raises(UnknownEndpointError):
            registry.get("https://stranger.example/rpc")

    def test_snapshots_are_detached(self, registry):
        """Test mutating a snapshot does not affect the registry."""
        snapshot = registry.select_endpoint()
        snapshot.state = EndpointHealth.UNAVAILABLE

        assert registry.get(DEFAULT_1).state == EndpointHealth.HEALTHY

    # ================================================================
    # Persistence
    # ================================================================

    def test_success_persists_last_known_good(self, registry, store):
        """Test a successful endpoint is written to the store."""
        registry.report_success(DEFAULT_2)

        assert store.get("RPC_ADDRESS") == DEFAULT_2
        assert registry.last_known_good() == DEFAULT_2

    def test_unchanged_url_not_rewritten(self, candidates, reporter):
        """Test repeated success on the same endpoint writes once."""
        store = CountingStore()
        registry = EndpointRegistry(candidates, store=store, reporter=reporter)

        for _ in range(3):
            registry.report_success(DEFAULT_1)

        assert store.writes == 1

    def test_custom_storage_key(self, candidates, store, reporter):
        """Test the storage key is configurable."""
        registry = EndpointRegistry(
            candidates, store=store, reporter=reporter, storage_key="LAYER_RPC"
        )

        registry.report_success(DEFAULT_1)

        assert store.get("LAYER_RPC") == DEFAULT_1
        assert store.get("RPC_ADDRESS") is None

    def test_storage_failure_disables_persistence(self, candidates, reporter):
        """Test a broken store is given up on for the session."""
        store = BrokenStore()

        registry = EndpointRegistry(candidates, store=store, reporter=reporter)
        registry.report_success(DEFAULT_1)
        registry.report_success(DEFAULT_2)

        assert not registry.persistence_enabled
        assert store.reads == 1
        assert store.writes == 0
        assert registry.get(DEFAULT_1).state == EndpointHealth.HEALTHY

    def test_write_failure_disables_persistence(self, candidates, reporter):
        """Test a failing write stops further writes."""

        class WriteOnlyBroken(BrokenStore):
            def get(self, key):
                self.reads += 1
                return None

        store = WriteOnlyBroken()
        registry = EndpointRegistry(candidates, store=store, reporter=reporter)

        registry.report_success(DEFAULT_1)
        registry.report_success(DEFAULT_2)

        assert store.writes == 1
        assert not registry.persistence_enabled

    def test_superseded_write_dropped(self, registry, store):
        """Test a write queued before a newer success does not overwrite it."""
        registry.report_success(DEFAULT_1)
        registry.report_success(DEFAULT_2)

        registry._persist(DEFAULT_1, 1)

        assert store.get("RPC_ADDRESS") == DEFAULT_2
        assert registry.last_known_good() == DEFAULT_2

    def test_blocking_store_written_off_caller_thread(self, candidates, reporter):
        """Test network-backed stores are written from the worker thread."""
        store = BlockingStore()
        registry = EndpointRegistry(candidates, store=store, reporter=reporter)

        registry.report_success(DEFAULT_2)
        registry.close()

        assert store.get("RPC_ADDRESS") == DEFAULT_2
        assert registry.last_known_good() == DEFAULT_2
        assert len(store.writer_threads) == 1
        assert store.writer_threads[0].startswith("vigie-persist")
        assert store.writer_threads[0] != threading.current_thread().name

    def test_close_without_writer_is_noop(self, registry, store):
        """Test close on a registry with a local store changes nothing."""
        registry.report_success(DEFAULT_1)
        registry.close()
        registry.close()

        assert store.get("RPC_ADDRESS") == DEFAULT_1

    def test_no_store_means_no_persistence(self, candidates, reporter):
        """Test the registry works without a store."""
        registry = EndpointRegistry(candidates, reporter=reporter)

        registry.report_success(DEFAULT_1)

        assert not registry.persistence_enabled
        assert registry.last_known_good() is None

    # ================================================================
    # Administrative control
    # ================================================================

    def test_restore(self, registry):
        """Test restore resets an unavailable endpoint."""
        self.fail(registry, DEFAULT_1, 6)

        endpoint = registry.restore(DEFAULT_1)

        assert endpoint.state == EndpointHealth.HEALTHY
        assert endpoint.consecutive_failures == 0
        assert registry.select_endpoint().url == DEFAULT_1

    def test_restore_unknown_raises(self, registry):
        """Test restore rejects unmanaged URLs."""
        with pytest.raises(UnknownEndpointError):
            registry.restore("https://stranger.example/rpc")

    def test_unavailable_endpoints(self, registry):
        """Test listing of unavailable endpoints."""
        assert registry.unavailable_endpoints() == []

        self.fail(registry, DEFAULT_2, 6)

        assert [e.url for e in registry.unavailable_endpoints()] == [DEFAULT_2]

    def test_pin_new_endpoint(self, registry):
        """Test pinning an unknown URL adds it in front."""
        endpoint = registry.pin(USER_RPC + "/")

        assert endpoint.url == USER_RPC
        assert endpoint.pinned
        assert registry.urls == [USER_RPC, DEFAULT_1, DEFAULT_2]
        assert registry.select_endpoint().url == USER_RPC

    def test_pin_existing_endpoint_moves_it(self, user_registry):
        """Test pinning a managed URL moves it and unpins the previous one."""
        user_registry.pin(DEFAULT_2)

        assert user_registry.urls == [DEFAULT_2, USER_RPC, DEFAULT_1]
        assert user_registry.get(DEFAULT_2).pinned
        assert not user_registry.get(USER_RPC).pinned

    def test_pin_rejects_invalid_url(self, registry):
        """Test pin validates the URL."""
        with pytest.raises(ValueError):
            registry.pin("ws://node.example")

    # ================================================================
    # Statistics
    # ================================================================

    def test_get_stats(self, registry):
        """Test statistics reflect outcomes."""
        registry.report_success(DEFAULT_1)
        self.fail(registry, DEFAULT_2, 3)

        stats = registry.get_stats()

        assert stats["active"] == DEFAULT_1
        assert stats["total_successes"] == 1
        assert stats["total_failures"] == 3
        assert stats["state_changes"] == 1
        assert stats["persistence_enabled"] is True
        assert stats["last_known_good"] == DEFAULT_1
        assert stats["config"]["degraded_threshold"] == 3
        assert [e["state"] for e in stats["endpoints"]] == ["healthy", "degraded"]

    def test_outcome_timestamps_use_clock(self, candidates, reporter):
        """Test last_outcome_at comes from the injected clock."""
        registry = EndpointRegistry(
            candidates, reporter=reporter, clock=lambda: 1234.5
        )

        registry.report_failure(DEFAULT_1)

        assert registry.get(DEFAULT_1).last_outcome_at == 1234.5


class TestEndpointRegistryThreadSafety:
    """Test registry counters under concurrent reporters."""

    URLS = [f"https://node-{i}.example/rpc" for i in range(1, 6)]
    ROUNDS = 200

    def test_concurrent_outcomes_are_atomic(self, reporter):
        """Test no failure or success is lost when threads report at once."""
        store = CountingStore()
        registry = EndpointRegistry(
            self.URLS,
            store=store,
            config=RegistryConfig(degraded_threshold=100, unavailable_threshold=1000),
            reporter=reporter,
        )
        failing, succeeding = self.URLS[:4], self.URLS[4]
        barrier = threading.Barrier(20)
        selected = []
        errors = []

        def fail_worker(url):
            try:
                barrier.wait()
                for _ in range(self.ROUNDS):
                    registry.report_failure(url)
                    selected.append(registry.select_endpoint().url)
            except Exception as e:
                errors.append(e)

        def success_worker():
            try:
                barrier.wait()
                for _ in range(self.ROUNDS):
                    registry.report_success(succeeding)
                    selected.append(registry.select_endpoint().url)
            except Exception as e:
                errors.append(e)

        threads = [
            threading.Thread(target=fail_worker, args=(failing[i % 4],))
            for i in range(16)
        ]
        threads += [threading.Thread(target=success_worker) for _ in range(4)]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert [registry.get(url).consecutive_failures for url in failing] == [
            800,
            800,
            800,
            800,
        ]
        assert registry.get(succeeding).consecutive_successes == 800

        stats = registry.get_stats()
        assert stats["total_failures"] == 3200
        assert stats["total_successes"] == 800
        assert stats["fail_open_resets"] == 0
        assert store.writes == 1
        assert set(selected) <= set(self.URLS)
        assert len(selected) == 4000

    def test_concurrent_successes_persist_latest(self, reporter):
        """Test the store ends on the URL the registry reports as last known good."""
        store = InMemoryEndpointStore()
        registry = EndpointRegistry(self.URLS, store=store, reporter=reporter)
        errors = []

        def worker(offset):
            try:
                for i in range(self.ROUNDS):
                    url = self.URLS[(i + offset) % len(self.URLS)]
                    registry.report_success(url)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        registry.report_success(self.URLS[2])

        assert errors == []
        assert store.get("RPC_ADDRESS") == self.URLS[2]
        assert registry.last_known_good() == self.URLS[2]
