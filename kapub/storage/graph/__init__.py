"""
Graph service: contratto async verso il DKG e adapter per l'SDK ufficiale.
"""

from kapub.storage.graph.base import BaseGraphService
from kapub.storage.graph.client import DkgGraphClient

__all__ = [
    "BaseGraphService",
    "DkgGraphClient",
]
