"""
Graph Service Interface
=======================

Narrow async contract towards the Decentralized Knowledge Graph.

Storage, consensus, transaction signing and content addressing all happen
behind this interface. kapub only drives it and recovers from its failures.

Example implementation:
    class InMemoryGraph(BaseGraphService):
        async def create_asset(self, content, options):
            ual = f"did:dkg:hardhat1:31337/0x{'0' * 40}/{len(self.assets)}/1"
            self.assets[ual] = content
            return {"UAL": ual}
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseGraphService(ABC):
    """
    Base interface for graph service clients.

    Every method may raise: errors surfaced here are terminal for the
    operation, the node has already consumed its own retry budget.
    """

    async def connect(self) -> None:
        """Open the connection. Override for clients that need setup."""
        pass

    async def close(self) -> None:
        """Release resources."""
        pass

    @abstractmethod
    async def node_info(self) -> Dict[str, Any]:
        """Connectivity probe: node version and status."""
        pass

    @abstractmethod
    async def create_asset(
        self,
        content: Dict[str, Any],
        options: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Publish a knowledge asset. The result carries the "UAL" locator."""
        pass

    @abstractmethod
    async def submit_to_paranet(self, ual: str, paranet_ual: str) -> Dict[str, Any]:
        """Attach a published asset to a paranet."""
        pass

    @abstractmethod
    async def query(
        self,
        query_text: str,
        query_type: str = "SELECT",
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Run a SPARQL query.

        Returns:
            Rows as dicts, or None when the node returned no data payload
        """
        pass

    @abstractmethod
    async def get_asset(self, ual: str, content_type: str = "all") -> Dict[str, Any]:
        """Resolve a published asset (public, private or all partitions)."""
        pass

    @abstractmethod
    async def create_paranet(self, ual: str, options: Dict[str, Any]) -> Dict[str, Any]:
        """Create a paranet anchored on an existing knowledge asset."""
        pass

    async def health_check(self) -> bool:
        """
        Check if the node is reachable.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self.node_info()
            return True
        except Exception:
            return False
