"""
Test Knowledge Publisher
========================

End-to-end tests of the facade with mocked graph service and LLM.
"""

import json

import pytest

from kapub.config.settings import PublisherConfig
from kapub.core import KnowledgePublisher
from kapub.exceptions import ConfigValidationError, ConnectivityError, PublicationError
from kapub.models import InputKind, RawInput

GENERATED = "SELECT DISTINCT ?name ?description WHERE { ?s <http://schema.org/name> ?name }"


@pytest.fixture
def publisher(config, mock_graph, mock_llm):
    return KnowledgePublisher(config, graph=mock_graph, llm=mock_llm)


@pytest.fixture
def paranet_publisher(config, mock_graph, mock_llm, paranet_ual):
    paranet_config = PublisherConfig(
        blockchain=config.blockchain,
        llm_api_key="sk-or-test",
        paranet_ual=paranet_ual,
        propagation_wait_seconds=0,
    )
    return KnowledgePublisher(paranet_config, graph=mock_graph, llm=mock_llm)


class TestConfiguration:

    def test_invalid_config_rejected_before_any_work(self, mock_graph, mock_llm):
        config = PublisherConfig(llm_api_key="sk-or-test")

        with pytest.raises(ConfigValidationError, match="blockchain.private_key"):
            KnowledgePublisher(config, graph=mock_graph, llm=mock_llm)

        mock_graph.node_info.assert_not_awaited()
        mock_graph.create_asset.assert_not_awaited()

    def test_malformed_paranet_rejected(self, config, mock_graph, mock_llm):
        config = PublisherConfig(
            blockchain=config.blockchain,
            paranet_ual="not-a-ual",
        )

        with pytest.raises(ConfigValidationError, match="PARANET_UAL"):
            KnowledgePublisher(config, graph=mock_graph, llm=mock_llm)

        mock_graph.create_asset.assert_not_awaited()


class TestPublication:

    @pytest.mark.asyncio
    async def test_publish_directory(self, publisher, tmp_path, mock_graph):
        (tmp_path / "a.json").write_text(json.dumps({"name": "A"}), encoding="utf-8")
        (tmp_path / "b.json").write_text("[oops", encoding="utf-8")

        report = await publisher.publish_directory(tmp_path)

        assert len(report) == 2
        assert [o.identifier for o in report.published] == ["a.json"]
        assert report.failed[0].reason.startswith("parse error")
        assert report.published[0].explorer_url.endswith(report.published[0].ual)

    @pytest.mark.asyncio
    async def test_publish_items_with_paranet(self, paranet_publisher, mock_graph, paranet_ual):
        mock_graph.submit_to_paranet.side_effect = RuntimeError("not a paranet miner")

        report = await paranet_publisher.publish_items(
            [RawInput("a.json", {"name": "A"}, InputKind.STRUCTURED)]
        )

        assert len(report.published) == 1
        assert report.attachment_failures[0].attachment.paranet_ual == paranet_ual

    @pytest.mark.asyncio
    async def test_options_built_once_from_config(self, publisher, mock_graph, config):
        await publisher.publish_items([
            RawInput("a.json", {"name": "A"}, InputKind.STRUCTURED),
            RawInput("b.json", {"name": "B"}, InputKind.STRUCTURED),
        ])

        sent = [call.args[1] for call in mock_graph.create_asset.await_args_list]
        assert sent[0] == sent[1]
        assert sent[0]["epochs_num"] == config.epochs_num


class TestAsk:

    @pytest.mark.asyncio
    async def test_generated_query(self, publisher, mock_llm, mock_graph):
        mock_llm.generate.return_value = f"```sparql\n{GENERATED}\n```"
        mock_graph.query.return_value = [{"name": "Conf", "description": "Talks"}]

        result = await publisher.ask("conferences about AI")

        assert not result.used_fallback
        assert result.formatted() == ["name: Conf, description: Talks"]
        assert mock_graph.query.await_args.args[0] == GENERATED

    @pytest.mark.asyncio
    async def test_generation_error_uses_fallback(self, publisher, mock_llm, mock_graph, event_template):
        mock_llm.generate.return_value = "Sorry, I can't."

        result = await publisher.ask("anything")

        assert result.used_fallback
        assert mock_graph.query.await_args.args[0] == event_template.fallback_query.strip()

    @pytest.mark.asyncio
    async def test_probe_failure_sends_no_query(self, publisher, mock_graph, mock_llm):
        mock_graph.node_info.side_effect = OSError("connection refused")

        with pytest.raises(ConnectivityError):
            await publisher.ask("anything")

        mock_graph.query.assert_not_awaited()
        mock_llm.generate.assert_not_awaited()


class TestParanetAndAssets:

    @pytest.mark.asyncio
    async def test_query_paranet_requires_paranet(self, publisher):
        with pytest.raises(ConfigValidationError, match="PARANET_UAL"):
            await publisher.query_paranet()

    @pytest.mark.asyncio
    async def test_query_paranet(self, paranet_publisher, mock_graph, paranet_ual):
        mock_graph.query.return_value = [{"asset": "did:dkg:x/1", "name": "Conf"}]

        result = await paranet_publisher.query_paranet(wait=False)

        assert len(result) == 1
        assert f"GRAPH <{paranet_ual}>" in mock_graph.query.await_args.args[0]

    @pytest.mark.asyncio
    async def test_get_asset_default_content_type(self, publisher, mock_graph):
        await publisher.get_asset("did:dkg:x/1")

        mock_graph.get_asset.assert_awaited_once_with("did:dkg:x/1", "all")

    @pytest.mark.asyncio
    async def test_create_paranet(self, publisher, mock_graph, paranet_ual):
        result = await publisher.create_paranet("did:dkg:x/1/1", "Memories", "Agent memories")

        assert result["UAL"] == paranet_ual
        ual, options = mock_graph.create_paranet.await_args.args
        assert ual == "did:dkg:x/1/1"
        assert options["paranet_name"] == "Memories"
        assert options["blockchain"]["name"] == "base:84532"

    @pytest.mark.asyncio
    async def test_create_paranet_failure(self, publisher, mock_graph):
        mock_graph.create_paranet.side_effect = RuntimeError("insufficient funds")

        with pytest.raises(PublicationError, match="insufficient funds"):
            await publisher.create_paranet("did:dkg:x/1/1", "Memories")

    @pytest.mark.asyncio
    async def test_connect_probes_once(self, publisher, mock_graph):
        await publisher.connect()
        await publisher.get_asset("did:dkg:x/1")

        mock_graph.node_info.assert_awaited_once()
        assert publisher.is_connected

    @pytest.mark.asyncio
    async def test_close(self, publisher, mock_graph, mock_llm):
        await publisher.connect()
        await publisher.close()

        mock_llm.close.assert_awaited_once()
        mock_graph.close.assert_awaited_once()
        assert not publisher.is_connected
