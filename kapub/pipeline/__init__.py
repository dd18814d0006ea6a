"""
kapub Publication Pipeline
==========================

Pipeline di pubblicazione di knowledge asset sul DKG.

Componenti:
- sources: Enumerazione degli input (DirectorySource)
- normalizer: Testo libero / JSON → envelope JSON-LD
- publisher: Pubblicazione e submit a paranet
- batch: Orchestrazione sequenziale con isolamento per item

Esempio:
    from kapub.pipeline import (
        BatchOrchestrator, ContentNormalizer, DirectorySource, PublicationEngine,
    )

    orchestrator = BatchOrchestrator(ContentNormalizer(llm), PublicationEngine(graph))
    outcomes = await orchestrator.run_source(DirectorySource("assets"), template, options)
"""

from kapub.pipeline.batch import BatchOrchestrator
from kapub.pipeline.normalizer import ContentNormalizer, extract_json_block, iter_json_blocks
from kapub.pipeline.publisher import PublicationEngine
from kapub.pipeline.sources import BaseInputSource, DirectorySource, InputItem

__all__ = [
    "BatchOrchestrator",
    "ContentNormalizer",
    "extract_json_block",
    "iter_json_blocks",
    "PublicationEngine",
    "BaseInputSource",
    "DirectorySource",
    "InputItem",
]
