"""
Test DKG Graph Client
=====================

Unit tests for DkgGraphClient with an injected fake SDK.
"""

from unittest.mock import MagicMock

import pytest

from kapub.config.settings import PublisherConfig
from kapub.exceptions import ConfigValidationError
from kapub.storage.graph import BaseGraphService, DkgGraphClient


@pytest.fixture
def fake_sdk():
    sdk = MagicMock()
    sdk.node.info = {"version": "8.0.3"}
    sdk.asset.create.return_value = {"UAL": "did:dkg:base:84532/0x" + "1" * 40 + "/1/1"}
    sdk.asset.get.return_value = {"assertion": [{"@id": "uuid:1"}]}
    sdk.asset.submit_to_paranet.return_value = {"status": "ok"}
    sdk.graph.query.return_value = [{"name": "Conf"}]
    sdk.paranet.create.return_value = {"UAL": "did:dkg:base:84532/0x" + "2" * 40 + "/1/1"}
    return sdk


@pytest.fixture
def client(config, fake_sdk):
    return DkgGraphClient(config, sdk=fake_sdk)


class TestDkgGraphClient:

    def test_is_graph_service(self, client):
        assert isinstance(client, BaseGraphService)
        assert client.node_uri == "http://localhost:8900"

    @pytest.mark.asyncio
    async def test_node_info(self, client):
        assert await client.node_info() == {"version": "8.0.3"}

    @pytest.mark.asyncio
    async def test_create_asset(self, client, fake_sdk, options):
        content = {"public": {"@type": "Event"}}

        result = await client.create_asset(content, options.to_sdk_options())

        assert result["UAL"].startswith("did:dkg:")
        fake_sdk.asset.create.assert_called_once_with(content, options.to_sdk_options())

    @pytest.mark.asyncio
    async def test_submit_to_paranet(self, client, fake_sdk, paranet_ual):
        await client.submit_to_paranet("did:dkg:x/1", paranet_ual)

        fake_sdk.asset.submit_to_paranet.assert_called_once_with("did:dkg:x/1", paranet_ual)

    @pytest.mark.asyncio
    async def test_query_list_result(self, client, fake_sdk):
        rows = await client.query("SELECT DISTINCT ?name WHERE { ?s ?p ?name }")

        assert rows == [{"name": "Conf"}]
        fake_sdk.graph.query.assert_called_once_with(
            "SELECT DISTINCT ?name WHERE { ?s ?p ?name }", {}
        )

    @pytest.mark.asyncio
    async def test_query_wrapped_result(self, client, fake_sdk):
        fake_sdk.graph.query.return_value = {"status": "COMPLETED", "data": [{"a": "1"}]}

        assert await client.query("SELECT DISTINCT ?a") == [{"a": "1"}]

    @pytest.mark.asyncio
    async def test_query_without_data(self, client, fake_sdk):
        fake_sdk.graph.query.return_value = {"status": "FAILED"}

        assert await client.query("SELECT DISTINCT ?a") is None

    @pytest.mark.asyncio
    async def test_get_asset(self, client, fake_sdk):
        await client.get_asset("did:dkg:x/1", "private")

        fake_sdk.asset.get.assert_called_once_with("did:dkg:x/1", {"content_type": "private"})

    @pytest.mark.asyncio
    async def test_create_paranet(self, client, fake_sdk):
        options = {"paranet_name": "Memories"}

        await client.create_paranet("did:dkg:x/1", options)

        fake_sdk.paranet.create.assert_called_once_with("did:dkg:x/1", options)

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        assert await client.health_check() is True

    @pytest.mark.asyncio
    async def test_calls_after_close_fail(self, client):
        await client.close()

        with pytest.raises(RuntimeError, match="Not connected"):
            await client.node_info()
        assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_connect_is_noop_with_injected_sdk(self, client, fake_sdk):
        await client.connect()

        assert client._sdk is fake_sdk


class TestDkgConnection:

    def test_node_uri_with_ssl(self, config):
        ssl_config = PublisherConfig(
            endpoint="http://v6-pegasus-node-02.origin-trail.network",
            blockchain=config.blockchain,
            use_ssl=True,
        )

        assert DkgGraphClient(ssl_config).node_uri == (
            "https://v6-pegasus-node-02.origin-trail.network:8900"
        )

    @pytest.mark.asyncio
    async def test_connect_refuses_mismatched_signer_key(self, config, monkeypatch):
        monkeypatch.setenv("PRIVATE_KEY", "0x" + "cd" * 32)
        client = DkgGraphClient(config)

        with pytest.raises(ConfigValidationError, match="PRIVATE_KEY"):
            await client.connect()

        assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_connect_refuses_missing_env_key(self, config, monkeypatch):
        monkeypatch.delenv("PRIVATE_KEY", raising=False)

        with pytest.raises(ConfigValidationError, match="blockchain.private_key"):
            await DkgGraphClient(config).connect()
