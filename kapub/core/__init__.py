"""
kapub Core
==========

Facade che coordina pipeline di pubblicazione e pipeline di query.
"""

from kapub.core.knowledge_publisher import KnowledgePublisher

__all__ = ["KnowledgePublisher"]
