"""
Publication Engine
==================

Pubblica StructuredEnvelope sul DKG e, se configurato, li sottomette a un
paranet.

publish() non solleva mai: ogni errore diventa un PublicationOutcome
FAILED con il motivo. Il budget di retry è quello del nodo, qui non ci
sono retry aggiuntivi.

Esempio:
    engine = PublicationEngine(graph, paranet_ual=config.paranet_ual)
    await engine.ensure_connected()

    outcome = await engine.publish(envelope, options, "post.txt")
    if outcome.success:
        print(outcome.ual, outcome.explorer_url)
"""

import logging
from typing import Any, Dict, Optional

from kapub.config.settings import DKG_EXPLORER_LINKS
from kapub.exceptions import ConnectivityError, PublicationError
from kapub.models import (
    PublicationOptions,
    PublicationOutcome,
    StructuredEnvelope,
    SubgraphAttachment,
)
from kapub.storage.graph.base import BaseGraphService

logger = logging.getLogger(__name__)


class PublicationEngine:
    """
    Attributes:
        graph: Servizio grafo (DKG)
        paranet_ual: Paranet target, None per pubblicare senza sottomissione
        explorer_base_url: Prefisso dei link all'explorer
    """

    def __init__(
        self,
        graph: BaseGraphService,
        paranet_ual: Optional[str] = None,
        explorer_base_url: str = DKG_EXPLORER_LINKS["testnet"],
    ):
        self.graph = graph
        self.paranet_ual = paranet_ual
        self.explorer_base_url = explorer_base_url

    async def ensure_connected(self) -> Dict[str, Any]:
        """
        Probe di connettività verso il nodo.

        Returns:
            Info del nodo

        Raises:
            ConnectivityError: Nodo non raggiungibile
        """
        try:
            await self.graph.connect()
            info = await self.graph.node_info()
        except Exception as e:
            raise ConnectivityError(f"Node connection failed: {e}") from e

        logger.info(f"Connected to node: {info}")
        return info

    def explorer_url(self, ual: str) -> str:
        return f"{self.explorer_base_url}{ual}"

    async def _create_asset(
        self,
        envelope: StructuredEnvelope,
        options: PublicationOptions,
    ) -> str:
        try:
            result = await self.graph.create_asset(
                envelope.to_content(),
                options.to_sdk_options(),
            )
        except Exception as e:
            raise PublicationError(f"publication error: {e}") from e

        ual = result.get("UAL") if isinstance(result, dict) else None
        if not ual:
            raise PublicationError("publication error: response carries no UAL")
        return ual

    async def publish(
        self,
        envelope: StructuredEnvelope,
        options: PublicationOptions,
        identifier: str,
    ) -> PublicationOutcome:
        """
        Pubblica un envelope.

        Args:
            envelope: Contenuto da pubblicare
            options: Opzioni della run
            identifier: Identificatore dell'input (per outcome e log)

        Returns:
            PUBLISHED con UAL, oppure FAILED con il motivo
        """
        logger.info(f"Creating asset for {identifier}")

        try:
            ual = await self._create_asset(envelope, options)
        except PublicationError as e:
            logger.error(f"Error creating asset for {identifier}: {e}")
            return PublicationOutcome.failed(identifier, str(e))

        outcome = PublicationOutcome.published(
            identifier,
            ual,
            explorer_url=self.explorer_url(ual),
        )
        logger.info(f"======================== ASSET CREATED: {ual}")
        logger.info(f"View on DKG Explorer: {outcome.explorer_url}")

        if self.paranet_ual:
            outcome.attachment = await self.attach(ual)

        return outcome

    async def attach(self, ual: str) -> SubgraphAttachment:
        """
        Sottomette un asset pubblicato al paranet configurato.

        Un fallimento viene registrato ma non declassa la pubblicazione.
        """
        paranet_ual = self.paranet_ual
        logger.info(f"Submitting {ual} to paranet {paranet_ual}")

        try:
            result = await self.graph.submit_to_paranet(ual, paranet_ual)
        except Exception as e:
            logger.warning(f"Paranet submission failed for {ual}: {e}")
            return SubgraphAttachment(paranet_ual=paranet_ual, success=False, error=str(e))

        logger.info(f"Asset {ual} submitted to paranet {paranet_ual}")
        return SubgraphAttachment(
            paranet_ual=paranet_ual,
            success=True,
            result=result if isinstance(result, dict) else None,
        )
