"""
kapub LLM
=========

Client per il modello generativo (OpenRouter).
"""

from kapub.llm.service import LLMModelConfig, LLMService

__all__ = [
    "LLMModelConfig",
    "LLMService",
]
