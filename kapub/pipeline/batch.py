"""
Batch Orchestrator
==================

Esegue la pipeline di pubblicazione su una sequenza di input.

Per ogni item: lettura → normalizzazione → pubblicazione → submit paranet.

Invariante: gli item sono processati strettamente in sequenza, mai in
parallelo. Tutte le pubblicazioni sono firmate dallo stesso signer e il nodo
assegna i nonce delle transazioni in ordine; richieste concorrenti con la
stessa chiave collidono sul nonce.

Ogni item è isolato: un errore di lettura, parsing, trasformazione o
pubblicazione produce un outcome FAILED e il batch prosegue. Solo il probe
di connettività iniziale interrompe la run.

Esempio:
    orchestrator = BatchOrchestrator(normalizer, engine)
    outcomes = await orchestrator.run(items, template, options)
    print(BatchReport(outcomes).summary())
"""

import logging
from typing import TYPE_CHECKING, Iterable, List

from kapub.exceptions import KapubError
from kapub.models import FileInput, PublicationOptions, PublicationOutcome, RawInput
from kapub.pipeline.normalizer import ContentNormalizer
from kapub.pipeline.publisher import PublicationEngine
from kapub.pipeline.sources import BaseInputSource, InputItem

if TYPE_CHECKING:
    from kapub.schemas.templates import SchemaTemplate

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """
    Attributes:
        normalizer: Content normalizer
        engine: Publication engine
    """

    def __init__(self, normalizer: ContentNormalizer, engine: PublicationEngine):
        self.normalizer = normalizer
        self.engine = engine

    async def run(
        self,
        items: Iterable[InputItem],
        template: "SchemaTemplate",
        options: PublicationOptions,
    ) -> List[PublicationOutcome]:
        """
        Pubblica tutti gli item, in ordine.

        Args:
            items: RawInput o FileInput
            template: Template JSON-LD per la normalizzazione
            options: Opzioni di pubblicazione della run

        Returns:
            Un outcome per item, nello stesso ordine degli input

        Raises:
            ConnectivityError: Probe iniziale fallito (nessun item processato)
        """
        await self.engine.ensure_connected()

        outcomes: List[PublicationOutcome] = []
        for item in items:
            logger.info(f"Processing file: {item.identifier}")
            outcome = await self._process_item(item, template, options)
            if not outcome.success:
                logger.error(f"Failed to process {item.identifier}: {outcome.reason}")
            outcomes.append(outcome)

        published = sum(1 for o in outcomes if o.success)
        logger.info(f"Batch completato: {published}/{len(outcomes)} pubblicati")
        return outcomes

    async def run_source(
        self,
        source: BaseInputSource,
        template: "SchemaTemplate",
        options: PublicationOptions,
    ) -> List[PublicationOutcome]:
        """
        Come run(), enumerando prima gli item della fonte.

        Raises:
            SourceReadError: Fonte non leggibile (es. directory mancante)
            ConnectivityError: Probe iniziale fallito
        """
        items = await source.collect()
        logger.info(f"{len(items)} item da {source.source_name}")
        return await self.run(items, template, options)

    async def _process_item(
        self,
        item: InputItem,
        template: "SchemaTemplate",
        options: PublicationOptions,
    ) -> PublicationOutcome:
        identifier = item.identifier

        try:
            raw = item.read() if isinstance(item, FileInput) else item
            if not isinstance(raw, RawInput):
                raise KapubError(f"unsupported input type: {type(raw).__name__}")
            envelope = await self.normalizer.normalize(raw, template)
        except KapubError as e:
            return PublicationOutcome.failed(identifier, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error on {identifier}")
            return PublicationOutcome.failed(identifier, f"unexpected error: {e}")

        return await self.engine.publish(envelope, options, identifier)
