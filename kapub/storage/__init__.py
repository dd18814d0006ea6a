"""
kapub Storage
=============

Accesso al Decentralized Knowledge Graph.
"""

from kapub.storage.graph import BaseGraphService, DkgGraphClient

__all__ = [
    "BaseGraphService",
    "DkgGraphClient",
]
