"""
Test fixtures and configuration.
"""

import logging
from typing import AsyncGenerator, List

import httpx
import pytest
import pytest_asyncio

from helpers import DEFAULT_1, DEFAULT_2, FakeNode, ManualScheduler

from vigie.config import PollingConfig, RegistryConfig, TransportConfig
from vigie.infrastructure.chain import ChainClient
from vigie.infrastructure.persistence import InMemoryEndpointStore
from vigie.infrastructure.registry import EndpointRegistry
from vigie.infrastructure.transport import RpcTransport
from vigie.reporter import SystemReporter

@pytest.fixture
def reporter() -> SystemReporter:
    """Verbose reporter so every log path runs."""
    return SystemReporter(name="vigie-test", level=logging.DEBUG, verbose=3)


@pytest.fixture
def candidates() -> List[str]:
    return [DEFAULT_1, DEFAULT_2]


@pytest.fixture
def registry_config() -> RegistryConfig:
    return RegistryConfig(degraded_threshold=3, unavailable_threshold=6)


@pytest.fixture
def store() -> InMemoryEndpointStore:
    return InMemoryEndpointStore()


@pytest.fixture
def registry(candidates, store, registry_config, reporter) -> EndpointRegistry:
    """Registry over the two default candidates."""
    return EndpointRegistry(
        candidates, store=store, config=registry_config, reporter=reporter
    )


@pytest.fixture
def fake_node() -> FakeNode:
    return FakeNode()


@pytest_asyncio.fixture
async def http_client(fake_node) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client wired to the fake node."""
    client = fake_node.client()
    yield client
    await client.aclose()


@pytest.fixture
def transport(registry, http_client, reporter) -> RpcTransport:
    return RpcTransport(
        registry,
        config=TransportConfig(mode="direct", request_timeout=2.0),
        client=http_client,
        reporter=reporter,
    )


@pytest.fixture
def chain_client(transport, reporter) -> ChainClient:
    return ChainClient(transport, reporter=reporter)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def polling_config() -> PollingConfig:
    return PollingConfig(interval=6.0, max_txs_per_block=50)
