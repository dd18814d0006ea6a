"""
Configuration module for kapub.
"""

from .settings import (
    BlockchainConfig,
    PublisherConfig,
    DKG_EXPLORER_LINKS,
    PARANET_UAL_PATTERN,
)

__all__ = [
    "BlockchainConfig",
    "PublisherConfig",
    "DKG_EXPLORER_LINKS",
    "PARANET_UAL_PATTERN",
]
