"""
End-to-end failover scenarios.

Registry, transport, chain client, polling engine and relay working
together against the scripted FakeNode.

Usage:
    pytest tests/integration/test_failover_flow.py
"""

import httpx
import pytest

from helpers import DEFAULT_1, DEFAULT_2, USER_RPC

from vigie.application.subscriptions import PollingEngine
from vigie.config import RegistryConfig, TransportConfig, VigieConfig
from vigie.domain.entities import EndpointHealth
from vigie.domain.exceptions import RelayRejectedError, TransportError
from vigie.infrastructure.chain import ChainClient
from vigie.infrastructure.monitoring import EndpointHealthProber
from vigie.infrastructure.persistence import InMemoryEndpointStore
from vigie.infrastructure.registry import EndpointRegistry
from vigie.infrastructure.transport import RpcTransport
from vigie.presentation.app import create_app

RELAY_URL = "http://relay.test/api/rpc-proxy"


class TestFailoverFlow:
    """Integration tests across the whole stack."""

    async def test_subscription_survives_node_outage(
        self, chain_client, registry, scheduler, polling_config, reporter, fake_node
    ):
        """Test block polling continues on the next node when one dies."""
        engine = PollingEngine(
            chain_client, polling_config, scheduler=scheduler, reporter=reporter
        )
        fake_node.script_heights(1, 2, 3)
        heights = []
        engine.subscribe_blocks(lambda block: heights.append(block.height))

        await scheduler.fire()
        fake_node.down.add(DEFAULT_1)
        await scheduler.fire()
        await scheduler.fire()

        assert heights == [1, 2, 3]
        assert registry.get(DEFAULT_1).state == EndpointHealth.DEGRADED
        assert registry.get(DEFAULT_2).consecutive_successes >= 2
        engine.stop()

    async def test_user_endpoint_restart_remembers_good_node(
        self, http_client, reporter, fake_node
    ):
        """Test a restarted session starts from the last good endpoint."""
        store = InMemoryEndpointStore()
        config = RegistryConfig(degraded_threshold=3, unavailable_threshold=6)
        fake_node.down.add(USER_RPC)

        first = EndpointRegistry(
            [DEFAULT_1, DEFAULT_2], store=store, config=config, reporter=reporter
        )
        client = ChainClient(
            RpcTransport(first, client=http_client, reporter=reporter),
            reporter=reporter,
        )
        await client.connect(USER_RPC)

        assert store.get("RPC_ADDRESS") == DEFAULT_1

        second = EndpointRegistry(
            [DEFAULT_2, DEFAULT_1], store=store, config=config, reporter=reporter
        )
        assert second.urls[0] == DEFAULT_1

    async def test_outage_and_restoration(self, http_client, reporter, fake_node):
        """Test a dead node is skipped, then restored by the probe."""
        now = [0.0]
        registry = EndpointRegistry(
            [DEFAULT_1, DEFAULT_2],
            config=RegistryConfig(
                degraded_threshold=1, unavailable_threshold=2, probe_reset_after=5.0
            ),
            reporter=reporter,
            clock=lambda: now[0],
        )
        client = ChainClient(
            RpcTransport(registry, client=http_client, reporter=reporter),
            reporter=reporter,
        )
        prober = EndpointHealthProber(
            registry, client=http_client, reporter=reporter, clock=lambda: now[0]
        )

        fake_node.down.add(DEFAULT_1)
        for _ in range(2):
            with pytest.raises(TransportError):
                await client.status(endpoint=DEFAULT_1)
        await client.latest_height()

        assert registry.get(DEFAULT_1).state == EndpointHealth.UNAVAILABLE
        assert registry.select_endpoint().url == DEFAULT_2

        fake_node.down.clear()
        now[0] = 10.0
        assert await prober.probe_once() == [DEFAULT_1]
        assert registry.select_endpoint().url == DEFAULT_1

    async def test_client_through_relay(
        self, registry, transport, reporter, fake_node
    ):
        """Test a relay-mode client fails over when the relay reports an outage."""
        app = create_app(
            settings=VigieConfig(persistence={"backend": "memory"}),
            registry=registry,
            transport=transport,
            reporter=reporter,
            enable_prober=False,
        )
        client_registry = EndpointRegistry([DEFAULT_1, DEFAULT_2], reporter=reporter)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app)) as http:
            client = ChainClient(
                RpcTransport(
                    client_registry,
                    TransportConfig(mode="relay", relay_url=RELAY_URL),
                    client=http,
                    reporter=reporter,
                ),
                reporter=reporter,
            )
            fake_node.height = 55
            fake_node.down.add(DEFAULT_1)

            assert await client.latest_height() == 55

        assert fake_node.calls("status") == [DEFAULT_1, DEFAULT_2]
        assert client_registry.get(DEFAULT_1).consecutive_failures == 1
        assert client_registry.get(DEFAULT_2).consecutive_successes == 1

    async def test_relay_refusal_does_not_blame_client_endpoint(
        self, registry, transport, reporter, fake_node
    ):
        """Test an endpoint the relay does not manage is never contacted or blamed."""
        app = create_app(
            settings=VigieConfig(persistence={"backend": "memory"}),
            registry=registry,
            transport=transport,
            reporter=reporter,
            enable_prober=False,
        )
        client_only = "https://client-only.example/rpc"
        client_registry = EndpointRegistry([client_only], reporter=reporter)
        fake_node.down.add(DEFAULT_1)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app)) as http:
            client = ChainClient(
                RpcTransport(
                    client_registry,
                    TransportConfig(mode="relay", relay_url=RELAY_URL),
                    client=http,
                    reporter=reporter,
                ),
                reporter=reporter,
            )

            with pytest.raises(RelayRejectedError):
                await client.status(endpoint=client_only)

        assert fake_node.requests == []
        assert registry.get(DEFAULT_1).consecutive_failures == 0
        assert client_registry.get(client_only).consecutive_failures == 0

    async def test_connect_through_relay_skips_unmanaged_user_endpoint(
        self, registry, transport, reporter, fake_node
    ):
        """Test connect does not pin a user endpoint the relay refused."""
        app = create_app(
            settings=VigieConfig(persistence={"backend": "memory"}),
            registry=registry,
            transport=transport,
            reporter=reporter,
            enable_prober=False,
        )
        client_registry = EndpointRegistry([DEFAULT_1, DEFAULT_2], reporter=reporter)
        fake_node.height = 12

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app)) as http:
            client = ChainClient(
                RpcTransport(
                    client_registry,
                    TransportConfig(mode="relay", relay_url=RELAY_URL),
                    client=http,
                    reporter=reporter,
                ),
                reporter=reporter,
            )
            status = await client.connect(USER_RPC)

        assert status.latest_height == 12
        assert fake_node.calls("status") == [DEFAULT_1]
        assert client_registry.urls[0] == DEFAULT_1
        assert client_registry.get(USER_RPC).consecutive_failures == 0
