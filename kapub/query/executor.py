"""
Query Executor
==============

Esegue una StructuredQuery sul DKG con al più un tentativo di fallback.

Macchina a stati:
    Start → TryGenerated → ok: Done | errore: TryFallback
    TryFallback → ok: Done | errore: QueryError

Una query FALLBACK parte direttamente da TryFallback. Zero righe è un
successo; una risposta senza payload dati è un tentativo fallito.

Esempio:
    executor = QueryExecutor(graph, query_options=options.to_query_options())
    result = await executor.execute(query, template.fallback_query)
    for line in result.formatted():
        print(line)
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from kapub.exceptions import QueryError
from kapub.models import QueryResultSet, StructuredQuery
from kapub.storage.graph.base import BaseGraphService

if TYPE_CHECKING:
    from kapub.schemas.templates import SchemaTemplate

logger = logging.getLogger(__name__)

DKG_ONTOLOGY = "https://ontology.origintrail.io/dkg/1.0#"


def _normalize_row(row: Any) -> Dict[str, str]:
    if not isinstance(row, dict):
        raise QueryError(f"DKG query failed: unexpected row {row!r}")
    return {
        str(key): "" if value is None else str(value)
        for key, value in row.items()
    }


def build_paranet_query(
    template: "SchemaTemplate",
    paranet_ual: str,
    limit: int = 50,
) -> str:
    """
    Query SPARQL limitata ai named graph di un paranet.

    Proietta l'asset, i campi testuali del template (i due canonici per
    primi) e il named graph di provenienza.

    Args:
        template: Template dei documenti interrogati
        paranet_ual: UAL del paranet
        limit: Numero massimo di righe
    """
    fields = list(template.projection)
    for spec in template.field_specs:
        if spec.kind.value in ("string", "date") and spec.name not in fields:
            fields.append(spec.name)

    variables = " ".join(f"?{name}" for name in fields)
    optionals = "\n".join(
        f"    OPTIONAL {{ ?asset schema:{name} ?{name} . }}" for name in fields
    )

    return (
        f"PREFIX dkg: <{DKG_ONTOLOGY}>\n"
        f"PREFIX schema: <{template.context.rstrip('/')}/>\n"
        f"\n"
        f"SELECT DISTINCT ?asset {variables} ?namedGraph\n"
        f"WHERE {{\n"
        f"  GRAPH <{paranet_ual}> {{\n"
        f"    <{paranet_ual}> dkg:hasNamedGraph ?namedGraph .\n"
        f"  }}\n"
        f"  GRAPH ?namedGraph {{\n"
        f"    ?asset a schema:{template.schema_type} .\n"
        f"{optionals}\n"
        f"  }}\n"
        f"}}\n"
        f"LIMIT {limit}"
    )


class QueryExecutor:
    """
    Attributes:
        graph: Servizio grafo
        query_options: Opzioni passate al nodo (rete, retry, frequenza)
        propagation_wait_seconds: Attesa di default prima di interrogare
            asset appena pubblicati
    """

    def __init__(
        self,
        graph: BaseGraphService,
        query_options: Optional[Dict[str, Any]] = None,
        propagation_wait_seconds: float = 0.1,
    ):
        self.graph = graph
        self.query_options = query_options or {}
        self.propagation_wait_seconds = propagation_wait_seconds

    async def _attempt(self, query: StructuredQuery) -> QueryResultSet:
        logger.info(f"Executing {query.origin.value} SPARQL query:\n{query.text}")

        try:
            rows = await self.graph.query(query.text, "SELECT", self.query_options)
        except Exception as e:
            raise QueryError(f"DKG query failed: {e}") from e

        if rows is None:
            raise QueryError("DKG query failed: No data returned")

        return QueryResultSet(rows=[_normalize_row(r) for r in rows], query=query)

    async def execute(
        self,
        query: StructuredQuery,
        fallback_query: Optional[Union[str, StructuredQuery]] = None,
    ) -> QueryResultSet:
        """
        Esegue la query, con un solo fallback se la query era generata.

        Args:
            query: Query attiva
            fallback_query: Query statica usata se la query generata fallisce

        Returns:
            Il primo result set ottenuto con successo

        Raises:
            QueryError: Query attiva e fallback entrambi falliti (o fallback
                assente)
        """
        if not query.is_fallback:
            try:
                return await self._attempt(query)
            except QueryError as e:
                if fallback_query is None:
                    raise
                logger.warning(f"{e}. Retrying with fallback SPARQL query...")

            if isinstance(fallback_query, StructuredQuery):
                query = StructuredQuery.fallback(fallback_query.text)
            else:
                query = StructuredQuery.fallback(fallback_query)

        return await self._attempt(query)

    async def execute_after_propagation(
        self,
        query: StructuredQuery,
        fallback_query: Optional[Union[str, StructuredQuery]] = None,
        wait_seconds: Optional[float] = None,
    ) -> QueryResultSet:
        """
        Attende la propagazione nel grafo, poi esegue.

        L'attesa non garantisce che asset appena pubblicati siano visibili.
        """
        wait = self.propagation_wait_seconds if wait_seconds is None else wait_seconds
        logger.info(f"Waiting {wait}s for graph propagation...")
        await asyncio.sleep(wait)
        return await self.execute(query, fallback_query)
