"""
kapub Query
===========

Pipeline di query: domanda → SPARQL generato (o fallback) → risultati.
"""

from kapub.query.constructor import (
    QueryConstructor,
    extract_sparql_block,
    validate_select_query,
)
from kapub.query.executor import QueryExecutor, build_paranet_query

__all__ = [
    "QueryConstructor",
    "extract_sparql_block",
    "validate_select_query",
    "QueryExecutor",
    "build_paranet_query",
]
