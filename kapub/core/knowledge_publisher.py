"""
Knowledge Publisher
===================

Core orchestration class that wires the kapub components together:
- DKG graph service (publication, paranet submission, SPARQL)
- OpenRouter LLM (free-text normalization, query generation)
- Publication pipeline (normalizer, engine, batch orchestrator)
- Query pipeline (constructor, executor with fallback)

The configuration is built once, validated, and passed down explicitly:
no component reads its settings from the environment on its own.

Usage:
    from kapub import KnowledgePublisher, PublisherConfig

    config = PublisherConfig.from_env()
    kp = KnowledgePublisher(config)
    await kp.connect()

    report = await kp.publish_directory("assets")
    print(report.summary())

    result = await kp.ask("Search for posts about blockchain or Web3")
    for line in result.formatted():
        print(line)

    await kp.close()
"""

import structlog
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from kapub.config.settings import PublisherConfig
from kapub.exceptions import ConfigValidationError, PublicationError
from kapub.llm.service import LLMService
from kapub.models import (
    BatchReport,
    PublicationOptions,
    QueryRequest,
    QueryResultSet,
    StructuredQuery,
)
from kapub.pipeline.batch import BatchOrchestrator
from kapub.pipeline.normalizer import ContentNormalizer
from kapub.pipeline.publisher import PublicationEngine
from kapub.pipeline.sources import DirectorySource, InputItem
from kapub.query.constructor import QueryConstructor
from kapub.query.executor import QueryExecutor, build_paranet_query
from kapub.schemas.templates import SchemaTemplate, get_template
from kapub.storage.graph.base import BaseGraphService
from kapub.storage.graph.client import DkgGraphClient

log = structlog.get_logger()


class KnowledgePublisher:
    """
    Unified API for publishing and querying knowledge assets.

    Attributes:
        config: Immutable run configuration
        graph: Graph service (DkgGraphClient unless injected)
        llm: LLM service (OpenRouter unless injected)
        options: Publication options built once from config

    Raises:
        ConfigValidationError: Invalid configuration (checked before any work)
    """

    def __init__(
        self,
        config: Optional[PublisherConfig] = None,
        graph: Optional[BaseGraphService] = None,
        llm: Optional[LLMService] = None,
    ):
        self.config = config or PublisherConfig.from_env()
        self.config.validate()
        self.graph = graph or DkgGraphClient(self.config)
        self.llm = llm or LLMService(
            api_key=self.config.llm_api_key,
            model=self.config.llm_model,
            temperature=self.config.llm_temperature,
        )
        self.options = PublicationOptions.from_config(self.config)

        self.engine = PublicationEngine(
            self.graph,
            paranet_ual=self.config.paranet_ual,
            explorer_base_url=self.config.explorer_base_url,
        )
        self.orchestrator = BatchOrchestrator(ContentNormalizer(self.llm), self.engine)
        self.constructor = QueryConstructor(self.llm)
        self.executor = QueryExecutor(
            self.graph,
            query_options=self.options.to_query_options(),
            propagation_wait_seconds=self.config.propagation_wait_seconds,
        )

        self._node_info: Optional[Dict[str, Any]] = None

        log.info("KnowledgePublisher initialized", **self.config.to_safe_dict())

    async def connect(self) -> Dict[str, Any]:
        """
        Run the connectivity probe once.

        Raises:
            ConnectivityError: Node unreachable
        """
        if self._node_info is None:
            self._node_info = await self.engine.ensure_connected()
        return self._node_info

    async def close(self) -> None:
        await self.llm.close()
        await self.graph.close()
        self._node_info = None
        log.info("KnowledgePublisher connections closed")

    @property
    def is_connected(self) -> bool:
        return self._node_info is not None

    def _template(self, name: Optional[str]) -> SchemaTemplate:
        return get_template(name or self.config.schema_template)

    # ═══════════════════════════════════════════════════════════════════════════
    #                           PUBLICATION
    # ═══════════════════════════════════════════════════════════════════════════

    async def publish_items(
        self,
        items: Iterable[InputItem],
        template_name: Optional[str] = None,
    ) -> BatchReport:
        """Publish in-memory or file inputs, strictly in order."""
        outcomes = await self.orchestrator.run(items, self._template(template_name), self.options)
        report = BatchReport(outcomes)
        log.info(
            "Publication batch complete",
            published=len(report.published),
            failed=len(report.failed),
        )
        return report

    async def publish_directory(
        self,
        path: Optional[Union[str, Path]] = None,
        template_name: Optional[str] = None,
    ) -> BatchReport:
        """
        Publish every supported file of a directory (sorted by name).

        Raises:
            SourceReadError: Directory missing or unreadable
            ConnectivityError: Node unreachable
        """
        source = DirectorySource(path or self.config.assets_dir)
        items = await source.collect()
        return await self.publish_items(items, template_name)

    # ═══════════════════════════════════════════════════════════════════════════
    #                           QUERY
    # ═══════════════════════════════════════════════════════════════════════════

    async def ask(
        self,
        question: str,
        template_name: Optional[str] = None,
    ) -> QueryResultSet:
        """
        Answer a natural-language question with a generated SPARQL query.

        Generation failures and generated-query failures both fall back to
        the template's static query.

        Raises:
            ConnectivityError: Node unreachable (no query is sent)
            QueryError: Fallback query failed as well
        """
        await self.connect()

        template = self._template(template_name)
        query = await self.constructor.construct_or_fallback(QueryRequest(question), template)
        return await self.executor.execute(query, template.fallback_query)

    async def query_paranet(
        self,
        template_name: Optional[str] = None,
        wait: bool = True,
    ) -> QueryResultSet:
        """
        List the assets of the configured paranet.

        Raises:
            ConfigValidationError: No paranet configured
            QueryError: Query failed
        """
        if not self.config.paranet_ual:
            raise ConfigValidationError(
                "Invalid configuration: 'PARANET_UAL' must be a string"
            )
        await self.connect()

        query = StructuredQuery.fallback(
            build_paranet_query(self._template(template_name), self.config.paranet_ual)
        )
        if wait:
            return await self.executor.execute_after_propagation(query)
        return await self.executor.execute(query)

    # ═══════════════════════════════════════════════════════════════════════════
    #                           ASSETS AND PARANETS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_asset(self, ual: str, content_type: Optional[str] = None) -> Dict[str, Any]:
        """Resolve a published asset ("public", "private" or "all")."""
        await self.connect()
        return await self.graph.get_asset(ual, content_type or self.config.content_type)

    async def create_paranet(
        self,
        ual: str,
        name: str,
        description: str = "",
        nodes_access_policy: int = 0,
        miners_access_policy: int = 0,
        kc_submission_policy: int = 0,
    ) -> Dict[str, Any]:
        """
        Create a paranet anchored on an existing knowledge asset.

        Raises:
            PublicationError: The node rejected the request
        """
        await self.connect()

        options = {
            "paranet_name": name,
            "paranet_description": description,
            "paranet_nodes_access_policy": nodes_access_policy,
            "paranet_miners_access_policy": miners_access_policy,
            "paranet_kc_submission_policy": kc_submission_policy,
            "blockchain": self.options.to_query_options()["blockchain"],
        }
        try:
            result = await self.graph.create_paranet(ual, options)
        except Exception as e:
            log.error(f"Error during paranet creation: {e}")
            raise PublicationError(f"paranet creation failed: {e}") from e

        log.info("Paranet created", ual=result.get("UAL") if isinstance(result, dict) else None)
        return result
