"""
kapub Test Configuration
========================

Shared fixtures for all tests.

Graph service and LLM are always mocked: no test talks to a DKG node or
to OpenRouter.
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from kapub.config.settings import BlockchainConfig, PublisherConfig
from kapub.models import PublicationOptions

PARANET_UAL = "did:dkg:base:84532/0x" + "a" * 40 + "/7/1"
FIXED_NOW = datetime(2025, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


def make_ual(n: int) -> str:
    return f"did:dkg:base:84532/0x{'1' * 40}/{n}/1"


# Configuration fixtures
@pytest.fixture
def paranet_ual():
    return PARANET_UAL


@pytest.fixture
def valid_env():
    """Environment mapping with every required variable set."""
    return {
        "OTNODE_HOST": "https://v6-pegasus-node-02.origin-trail.network",
        "OTNODE_PORT": "8900",
        "BLOCKCHAIN_NAME": "base:84532",
        "PRIVATE_KEY": "0x" + "ab" * 32,
        "PARANET_UAL": PARANET_UAL,
        "OPENROUTER_API_KEY": "sk-or-test",
    }


@pytest.fixture
def config():
    """Validated configuration without paranet."""
    return PublisherConfig(
        blockchain=BlockchainConfig(name="base:84532", private_key="0x" + "ab" * 32),
        llm_api_key="sk-or-test",
        propagation_wait_seconds=0,
    )


@pytest.fixture
def options(config):
    return PublicationOptions.from_config(config)


# Mock graph service for unit tests
@pytest.fixture
def mock_graph():
    """Mock DKG graph service: each create_asset returns a new UAL."""
    graph = MagicMock()
    counter = {"n": 0}

    async def create_asset(content, options):
        counter["n"] += 1
        return {"UAL": make_ual(counter["n"])}

    graph.connect = AsyncMock()
    graph.close = AsyncMock()
    graph.node_info = AsyncMock(return_value={"version": "8.0.0"})
    graph.create_asset = AsyncMock(side_effect=create_asset)
    graph.submit_to_paranet = AsyncMock(return_value={"status": "submitted"})
    graph.query = AsyncMock(return_value=[])
    graph.get_asset = AsyncMock(return_value={"assertion": []})
    graph.create_paranet = AsyncMock(return_value={"UAL": PARANET_UAL})
    return graph


# Mock LLM for unit tests
@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.generate = AsyncMock()
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


# Sample data fixtures
@pytest.fixture
def event_template():
    from kapub.schemas import get_template
    return get_template("event")


@pytest.fixture
def social_template():
    from kapub.schemas import get_template
    return get_template("social_media_posting")


@pytest.fixture
def sample_text():
    return (
        "Join us at the Web3 Builders Meetup in Lisbon on March 3rd, 2025. "
        "Talks on decentralized knowledge graphs and AI agents."
    )


@pytest.fixture
def event_response():
    """Model response with prose around a valid Event JSON-LD object."""
    def build(description: str = "paraphrased text", start_date: str = "2025-03-03T18:00:00Z"):
        doc = {
            "@context": "http://schema.org",
            "@type": "Event",
            "name": "Web3 Builders Meetup",
            "description": description,
            "startDate": start_date,
            "keywords": [{"@type": "Text", "@id": "uuid:web3", "name": "Web3"}],
            "about": [
                {
                    "@type": "Thing",
                    "@id": "https://en.wikipedia.org/wiki/Knowledge_graph",
                    "name": "Knowledge graph",
                }
            ],
        }
        return f"Here is the memory:\n{json.dumps(doc, indent=2)}\nLet me know!"
    return build
