"""
Endpoint Health Registry.

Tracks a ranked list of candidate RPC endpoints and demotes or restores
them from observed call outcomes.

State Machine (per endpoint):
    HEALTHY -> DEGRADED -> UNAVAILABLE
       ^          |             |
       +----------+-------------+  (success or restoration)

- HEALTHY: Normal operation, counting consecutive failures
- DEGRADED: Still selectable, ranked after every healthy endpoint
- UNAVAILABLE: Skipped by selection until restored

If every endpoint is UNAVAILABLE, selection resets all of them to
HEALTHY (fail-open) and hands out the highest-priority one.
"""

import dataclasses
import time
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable, List, Optional, Union

from vigie.config.settings import RegistryConfig
from vigie.domain.entities import Endpoint, EndpointHealth
from vigie.domain.exceptions import (
    PersistenceError,
    RegistryExhaustedError,
    UnknownEndpointError,
)
from vigie.infrastructure.persistence import EndpointStore
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji

DEFAULT_STORAGE_KEY = "RPC_ADDRESS"

# A pinned endpoint is never demoted by its first failure.
PINNED_MIN_DEGRADED_THRESHOLD = 2

_RANK = {
    EndpointHealth.HEALTHY: 0,
    EndpointHealth.DEGRADED: 1,
}

EndpointRef = Union[Endpoint, str]


class EndpointRegistry:
    """
    Thread-safe registry of RPC endpoints and their health.

    Priority order is: user-supplied endpoint (pinned), persisted
    last-known-good endpoint, configured candidates. Duplicates keep
    their first position.

    Example:
        registry = EndpointRegistry(
            ["https://a.example/rpc", "https://b.example/rpc"],
            store=InMemoryEndpointStore(),
        )

        endpoint = registry.select_endpoint()
        try:
            result = await call(endpoint.url)
            registry.report_success(endpoint)
        except TransportError:
            registry.report_failure(endpoint)
    """

    def __init__(
        self,
        candidates: List[str],
        user_endpoint: Optional[str] = None,
        store: Optional[EndpointStore] = None,
        config: Optional[RegistryConfig] = None,
        reporter: Optional[SystemReporter] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize endpoint registry.

        Args:
            candidates: Configured endpoint URLs in priority order
            user_endpoint: Explicitly supplied URL, always tried first
            store: Durable last-known-good storage (None = in-memory only)
            config: Health thresholds (uses defaults if not provided)
            reporter: SystemReporter for logging
            storage_key: Key holding the last-known-good URL
            clock: Time source for outcome timestamps

        Raises:
            ValueError: If no usable endpoint URL is supplied
        """
        self.config = config or RegistryConfig()
        self.reporter = reporter or SystemReporter(name="vigie")
        self.storage_key = storage_key
        self._store = store
        self._persistence_enabled = store is not None
        self._last_persisted: Optional[str] = None
        self._clock = clock

        # Thread safety
        self._lock = Lock()
        self._write_lock = Lock()

        # Latest URL queued for persistence and its sequence number
        self._persist_target: Optional[str] = None
        self._persist_seq = 0
        self._writer: Optional[ThreadPoolExecutor] = None
        if getattr(store, "blocking", False):
            self._writer = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="vigie-persist"
            )

        # Statistics
        self._total_successes = 0
        self._total_failures = 0
        self._state_changes = 0
        self._fail_open_resets = 0

        persisted = self._load_persisted()

        self._endpoints: List[Endpoint] = []
        if user_endpoint:
            self._add(user_endpoint, pinned=True)
        if persisted:
            try:
                self._add(persisted)
            except ValueError as e:
                self.reporter.warning(
                    f"{Emoji.ERROR.INVALID_INPUT} Ignoring stored endpoint: {e}",
                    context="Registry",
                )
        for url in candidates:
            self._add(url)

        if not self._endpoints:
            raise ValueError("At least one endpoint is required")

        self._active_index = 0

        self.reporter.info(
            f"{Emoji.SYSTEM.READY} Registry initialized with "
            f"{len(self._endpoints)} endpoints "
            f"(first: {self._endpoints[0].url})",
            context="Registry",
            verbose_level=2,
        )

    # ============================================================
    # Construction helpers
    # ============================================================

    def _add(self, url: str, pinned: bool = False) -> None:
        """Append an endpoint unless its URL is already managed."""
        endpoint = Endpoint(url=url.strip(), pinned=pinned)
        if self._find(endpoint.url) is None:
            self._endpoints.append(endpoint)

    def _load_persisted(self) -> Optional[str]:
        """Read the last-known-good URL, disabling persistence on failure."""
        if self._store is None:
            return None

        try:
            value = self._store.get(self.storage_key)
        except PersistenceError as e:
            self._disable_persistence(e)
            return None

        if value:
            self._last_persisted = value.rstrip("/")
            self._persist_target = self._last_persisted
            self.reporter.info(
                f"{Emoji.SYSTEM.LOAD} Last known good endpoint: {value}",
                context="Registry",
                verbose_level=2,
            )
        return value or None

    def _find(self, url: str) -> Optional[Endpoint]:
        normalized = url.rstrip("/")
        for endpoint in self._endpoints:
            if endpoint.url == normalized:
                return endpoint
        return None

    def _require(self, ref: EndpointRef) -> Endpoint:
        url = ref.url if isinstance(ref, Endpoint) else ref
        endpoint = self._find(url)
        if endpoint is None:
            raise UnknownEndpointError(
                f"Endpoint not managed by registry: {url}",
                details={"url": url},
            )
        return endpoint

    # ============================================================
    # Read access
    # ============================================================

    @property
    def endpoints(self) -> List[Endpoint]:
        """Snapshot of all endpoints in priority order."""
        with self._lock:
            return [dataclasses.replace(e) for e in self._endpoints]

    @property
    def active_endpoint(self) -> Endpoint:
        """Snapshot of the endpoint most recently handed out by selection."""
        with self._lock:
            return dataclasses.replace(self._endpoints[self._active_index])

    @property
    def urls(self) -> List[str]:
        """Endpoint URLs in priority order."""
        with self._lock:
            return [e.url for e in self._endpoints]

    def get(self, url: str) -> Endpoint:
        """
        Get snapshot of one endpoint.

        Raises:
            UnknownEndpointError: If the URL is not managed
        """
        with self._lock:
            return dataclasses.replace(self._require(url))

    def contains(self, url: str) -> bool:
        """Whether the URL is managed by this registry."""
        with self._lock:
            return self._find(url) is not None

    # ============================================================
    # Selection
    # ============================================================

    def select_endpoint(self) -> Endpoint:
        """
        Select the endpoint to use for the next call.

        Returns the highest-priority HEALTHY endpoint, else the
        highest-priority DEGRADED one. When every endpoint is
        UNAVAILABLE, all are reset to HEALTHY and the first is returned.

        Returns:
            Snapshot of the selected endpoint (never None)
        """
        exhausted: Optional[RegistryExhaustedError] = None

        with self._lock:
            ranked = [
                (_RANK[e.state], index)
                for index, e in enumerate(self._endpoints)
                if e.is_available
            ]

            if ranked:
                _, self._active_index = min(ranked)
            else:
                exhausted = RegistryExhaustedError(
                    "All endpoints unavailable",
                    details={"endpoints": len(self._endpoints)},
                )
                for endpoint in self._endpoints:
                    endpoint.reset()
                self._active_index = 0
                self._fail_open_resets += 1
                self._state_changes += len(self._endpoints)

            selected = dataclasses.replace(self._endpoints[self._active_index])

        if exhausted is not None:
            self.reporter.warning(
                f"{Emoji.ERROR.FALLBACK} {exhausted.message}, "
                f"resetting all to healthy (using {selected.url})",
                context="Registry",
            )

        return selected

    # ============================================================
    # Outcome reporting
    # ============================================================

    def report_success(self, ref: EndpointRef) -> Optional[EndpointHealth]:
        """
        Record a successful call.

        Resets the failure counter, restores the endpoint to HEALTHY and
        persists it as last known good. Blocking stores are written from
        a worker thread.

        Args:
            ref: Endpoint or its URL

        Returns:
            Resulting state, or None if the endpoint is unknown
        """
        with self._lock:
            try:
                endpoint = self._require(ref)
            except UnknownEndpointError as e:
                self._log_unknown(e)
                return None

            endpoint.consecutive_failures = 0
            endpoint.consecutive_successes += 1
            endpoint.last_outcome_at = self._clock()
            self._total_successes += 1

            previous = endpoint.state
            if previous != EndpointHealth.HEALTHY:
                endpoint.state = EndpointHealth.HEALTHY
                self._state_changes += 1

            url = endpoint.url

            persist_seq = None
            if self._persistence_enabled and url != self._persist_target:
                self._persist_target = url
                self._persist_seq += 1
                persist_seq = self._persist_seq

        if previous != EndpointHealth.HEALTHY:
            self.reporter.info(
                f"{Emoji.STATE.RESTORED} {url}: {previous.value} -> healthy",
                context="Registry",
            )

        if persist_seq is not None:
            writer = self._writer
            if writer is not None:
                future = writer.submit(self._persist, url, persist_seq)
                future.add_done_callback(self._check_write)
            else:
                self._persist(url, persist_seq)
        return EndpointHealth.HEALTHY

    def report_failure(self, ref: EndpointRef) -> Optional[EndpointHealth]:
        """
        Record a failed call.

        Args:
            ref: Endpoint or its URL

        Returns:
            Resulting state, or None if the endpoint is unknown
        """
        with self._lock:
            try:
                endpoint = self._require(ref)
            except UnknownEndpointError as e:
                self._log_unknown(e)
                return None

            endpoint.consecutive_failures += 1
            endpoint.consecutive_successes = 0
            endpoint.last_outcome_at = self._clock()
            self._total_failures += 1

            previous = endpoint.state
            failures = endpoint.consecutive_failures

            degraded_at = self.config.degraded_threshold
            if endpoint.pinned:
                degraded_at = max(degraded_at, PINNED_MIN_DEGRADED_THRESHOLD)

            if endpoint.state == EndpointHealth.HEALTHY and failures >= degraded_at:
                endpoint.state = EndpointHealth.DEGRADED
                self._state_changes += 1

            if (
                endpoint.state == EndpointHealth.DEGRADED
                and failures >= self.config.unavailable_threshold
            ):
                endpoint.state = EndpointHealth.UNAVAILABLE
                self._state_changes += 1
                self._advance_from(self._endpoints.index(endpoint))

            state = endpoint.state
            url = endpoint.url

        if state != previous:
            self.reporter.warning(
                f"{Emoji.STATE.TRANSITION} {url}: {previous.value} -> "
                f"{state.value} after {failures} consecutive failures",
                context="Registry",
            )
        else:
            self.reporter.debug(
                f"{Emoji.ERROR.WARNING} {url}: failure {failures}",
                context="Registry",
            )

        return state

    def _advance_from(self, index: int) -> None:
        """Move the active index past an endpoint that became unavailable."""
        if index != self._active_index:
            return

        count = len(self._endpoints)
        for step in range(1, count):
            candidate = (index + step) % count
            if self._endpoints[candidate].is_available:
                self._active_index = candidate
                return

    def _log_unknown(self, error: UnknownEndpointError) -> None:
        self.reporter.warning(
            f"{Emoji.ERROR.NOT_FOUND} {error.message}",
            context="Registry",
        )

    # ============================================================
    # Administrative control
    # ============================================================

    def restore(self, url: str) -> Endpoint:
        """
        Reset one endpoint to HEALTHY.

        Used by the restoration probe and for manual control.

        Raises:
            UnknownEndpointError: If the URL is not managed
        """
        with self._lock:
            endpoint = self._require(url)
            previous = endpoint.state
            endpoint.reset()
            endpoint.last_outcome_at = self._clock()
            if previous != EndpointHealth.HEALTHY:
                self._state_changes += 1
            snapshot = dataclasses.replace(endpoint)

        if previous != EndpointHealth.HEALTHY:
            self.reporter.info(
                f"{Emoji.STATE.RESTORED} {url}: {previous.value} -> healthy",
                context="Registry",
            )
        return snapshot

    def pin(self, url: str) -> Endpoint:
        """
        Make a user-supplied endpoint the first one tried.

        An unknown URL is added. Any previously pinned endpoint keeps
        its position but loses first-attempt protection.

        Raises:
            ValueError: If the URL is not http(s)
        """
        normalized = url.strip().rstrip("/")

        with self._lock:
            endpoint = self._find(normalized)
            if endpoint is None:
                endpoint = Endpoint(url=normalized)
            else:
                self._endpoints.remove(endpoint)

            for other in self._endpoints:
                other.pinned = False

            endpoint.pinned = True
            self._endpoints.insert(0, endpoint)
            self._active_index = 0
            snapshot = dataclasses.replace(endpoint)

        self.reporter.info(
            f"{Emoji.NETWORK.CONNECTED} Pinned endpoint {normalized}",
            context="Registry",
        )
        return snapshot

    def unavailable_endpoints(self) -> List[Endpoint]:
        """Snapshots of endpoints currently UNAVAILABLE."""
        with self._lock:
            return [
                dataclasses.replace(e)
                for e in self._endpoints
                if e.state == EndpointHealth.UNAVAILABLE
            ]

    # ============================================================
    # Persistence
    # ============================================================

    @property
    def persistence_enabled(self) -> bool:
        """Whether last-known-good writes are still attempted."""
        return self._persistence_enabled

    def last_known_good(self) -> Optional[str]:
        """Most recently persisted URL in this session."""
        with self._lock:
            return self._last_persisted

    def _persist(self, url: str, seq: int) -> None:
        """
        Write a last-known-good URL queued under sequence number `seq`.

        Writes are serialized; a write superseded by a newer success is
        dropped so the store never ends on a stale URL.
        """
        with self._write_lock:
            with self._lock:
                if seq != self._persist_seq or not self._persistence_enabled:
                    return

            try:
                self._store.set(self.storage_key, url)
            except PersistenceError as e:
                self._disable_persistence(e)
                return

            with self._lock:
                self._last_persisted = url

        self.reporter.debug(
            f"{Emoji.SYSTEM.SAVE} Persisted last known good endpoint {url}",
            context="Registry",
        )

    def _disable_persistence(self, error: PersistenceError) -> None:
        with self._lock:
            self._persistence_enabled = False
        self.reporter.warning(
            f"{Emoji.ERROR.WARNING} Endpoint persistence disabled for this "
            f"session: {error.message}",
            context="Registry",
        )

    def _check_write(self, future: Future) -> None:
        """Log a background write that failed outside PersistenceError."""
        error = future.exception()
        if error is not None:
            self.reporter.error(
                f"{Emoji.ERROR.ERROR} Endpoint persistence write failed: {error}",
                context="Registry",
            )

    def close(self) -> None:
        """Wait for queued background writes and stop the writer thread."""
        if self._writer is not None:
            self._writer.shutdown(wait=True)
            self._writer = None

    # ============================================================
    # Statistics
    # ============================================================

    def get_stats(self) -> dict:
        """
        Get registry statistics.

        Returns:
            Dictionary with per-endpoint state and totals
        """
        with self._lock:
            return {
                "active": self._endpoints[self._active_index].url,
                "endpoints": [e.to_dict() for e in self._endpoints],
                "total_successes": self._total_successes,
                "total_failures": self._total_failures,
                "state_changes": self._state_changes,
                "fail_open_resets": self._fail_open_resets,
                "persistence_enabled": self._persistence_enabled,
                "last_known_good": self._last_persisted,
                "config": {
                    "degraded_threshold": self.config.degraded_threshold,
                    "unavailable_threshold": self.config.unavailable_threshold,
                    "probe_interval": self.config.probe_interval,
                    "probe_reset_after": self.config.probe_reset_after,
                },
            }
