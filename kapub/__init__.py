"""
kapub - Knowledge Asset Publisher
=================================

Pubblica contenuti (testo libero o JSON-LD) come knowledge asset sul
Decentralized Knowledge Graph di OriginTrail e li interroga con query
SPARQL generate da un modello, con fallback deterministico.

Quick Start:
    from kapub import KnowledgePublisher, PublisherConfig

    kp = KnowledgePublisher(PublisherConfig.from_env())
    report = await kp.publish_directory("assets")
    result = await kp.ask("Search for posts about Web3")
"""

__version__ = "0.1.0"

from kapub.config.settings import BlockchainConfig, PublisherConfig
from kapub.core.knowledge_publisher import KnowledgePublisher
from kapub.exceptions import (
    ConfigValidationError,
    ConnectivityError,
    GenerationError,
    KapubError,
    PublicationError,
    QueryError,
    SourceReadError,
    TransformError,
)
from kapub.models import (
    BatchReport,
    FileInput,
    InputKind,
    PublicationOptions,
    PublicationOutcome,
    QueryRequest,
    QueryResultSet,
    RawInput,
    StructuredEnvelope,
    StructuredQuery,
)

__all__ = [
    "__version__",
    "BlockchainConfig",
    "PublisherConfig",
    "KnowledgePublisher",
    "KapubError",
    "ConfigValidationError",
    "ConnectivityError",
    "SourceReadError",
    "TransformError",
    "GenerationError",
    "PublicationError",
    "QueryError",
    "BatchReport",
    "FileInput",
    "InputKind",
    "PublicationOptions",
    "PublicationOutcome",
    "QueryRequest",
    "QueryResultSet",
    "RawInput",
    "StructuredEnvelope",
    "StructuredQuery",
]
