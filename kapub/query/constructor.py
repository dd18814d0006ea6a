"""
Query Constructor
=================

Converte una domanda in linguaggio naturale in una query SPARQL tramite il
modello generativo.

Il prompt incorpora il documento di esempio del template, una query di
riferimento e le istruzioni di formato (solo i due campi canonici,
DISTINCT, match in OR tra i termini). La query viene estratta dal primo
blocco ```sparql della risposta.

Se la generazione fallisce il chiamante sostituisce la query di fallback:
è il percorso di recupero previsto, non un caso limite.

Esempio:
    constructor = QueryConstructor(llm_service)
    query = await constructor.construct_or_fallback(
        QueryRequest("posts about blockchain or Web3"),
        get_template("social_media_posting"),
    )
"""

import json
import logging
import re
from typing import TYPE_CHECKING, Optional

from kapub.config.prompts import get_query_prompt, get_system_prompt
from kapub.exceptions import GenerationError
from kapub.models import QueryRequest, StructuredQuery

if TYPE_CHECKING:
    from kapub.llm.service import LLMService
    from kapub.schemas.templates import SchemaTemplate

logger = logging.getLogger(__name__)

SPARQL_BLOCK_PATTERN = re.compile(r"```sparql([\s\S]*?)```", re.IGNORECASE)


def extract_sparql_block(text: str) -> Optional[str]:
    """
    Primo blocco ```sparql ... ``` della risposta, senza spazi ai bordi.

    Returns:
        Testo della query o None se il blocco manca o è vuoto
    """
    match = SPARQL_BLOCK_PATTERN.search(text or "")
    if not match:
        return None
    return match.group(1).strip() or None


def validate_select_query(query: str) -> None:
    """
    Raises:
        GenerationError: La query non è una SELECT DISTINCT
    """
    upper = query.upper()
    if "SELECT" not in upper:
        raise GenerationError("Generated query is not a SELECT query")
    if "DISTINCT" not in upper:
        raise GenerationError("Generated query does not use DISTINCT")


class QueryConstructor:
    """
    Attributes:
        llm: Servizio generativo
    """

    def __init__(self, llm: "LLMService"):
        self.llm = llm

    def build_prompt(
        self,
        request: QueryRequest,
        template: "SchemaTemplate",
        example_query: Optional[str] = None,
    ) -> str:
        return get_query_prompt().format(
            template=json.dumps(template.example_document(), indent=2),
            example_query=(example_query or template.example_query).strip(),
            question=request.text,
            projection=", ".join(template.projection),
        )

    async def construct(
        self,
        request: QueryRequest,
        template: "SchemaTemplate",
        example_query: Optional[str] = None,
        fallback_query: Optional[str] = None,
    ) -> StructuredQuery:
        """
        Genera una query SPARQL per la domanda.

        Args:
            request: Domanda utente
            template: Template dei documenti interrogati
            example_query: Query di riferimento (default: quella del template)
            fallback_query: Query statica da sostituire in caso di errore
                (default: quella del template)

        Returns:
            StructuredQuery GENERATED

        Raises:
            GenerationError: Modello non disponibile, nessun blocco sparql,
                oppure query non SELECT DISTINCT. `fallback_query` dell'errore
                contiene la query da usare al suo posto.
        """
        try:
            return await self._generate(request, template, example_query)
        except GenerationError as e:
            e.fallback_query = (fallback_query or template.fallback_query).strip()
            raise

    async def _generate(
        self,
        request: QueryRequest,
        template: "SchemaTemplate",
        example_query: Optional[str],
    ) -> StructuredQuery:
        prompt = self.build_prompt(request, template, example_query)

        try:
            response = await self.llm.generate(prompt, system_prompt=get_system_prompt())
        except Exception as e:
            raise GenerationError(f"model call failed: {e}") from e

        text = extract_sparql_block(response)
        if text is None:
            raise GenerationError("No valid SPARQL query found in model response")

        validate_select_query(text)

        logger.info(f"Generated SPARQL query:\n{text}")
        return StructuredQuery.generated(text)

    async def construct_or_fallback(
        self,
        request: QueryRequest,
        template: "SchemaTemplate",
        example_query: Optional[str] = None,
        fallback_query: Optional[str] = None,
    ) -> StructuredQuery:
        """
        construct() con sostituzione della query di fallback su GenerationError.

        Args:
            fallback_query: Query statica (default: quella del template)

        Returns:
            StructuredQuery GENERATED, oppure FALLBACK se la generazione fallisce
        """
        try:
            return await self.construct(request, template, example_query, fallback_query)
        except GenerationError as e:
            logger.warning(f"Failed to generate SPARQL query, using fallback query: {e}")
            return StructuredQuery.fallback(e.fallback_query)
