"""
DKG Client
==========

Async adapter over the OriginTrail `dkg` Python SDK.

The SDK is synchronous: every call runs in the default executor so the
pipeline's event loop is never blocked. Retry budget and polling frequency
are handed to the SDK, this client adds no retries of its own.

Install the SDK with: pip install "kapub[dkg]"

Usage:
    from kapub.config import PublisherConfig
    from kapub.storage.graph import DkgGraphClient

    client = DkgGraphClient(PublisherConfig.from_env())
    await client.connect()
    info = await client.node_info()
"""

import asyncio
import functools
import os
import structlog
from typing import Any, Callable, Dict, List, Optional

from kapub.config.settings import PublisherConfig
from kapub.exceptions import ConfigValidationError
from kapub.storage.graph.base import BaseGraphService

log = structlog.get_logger()


class DkgGraphClient(BaseGraphService):
    """
    Graph service backed by a DKG node.

    Signer key: the SDK's BlockchainProvider takes only the network name and
    reads the signer key from the PRIVATE_KEY environment variable, so
    `config.blockchain.private_key` is validated but never handed to the SDK.
    `connect()` refuses to build the SDK when the two disagree, so a config
    built with `from_mapping` never signs with an unrelated key.

    Example:
        client = DkgGraphClient(config)
        await client.connect()

        result = await client.create_asset(
            {"public": {"@context": "http://schema.org", "@type": "Event", ...}},
            options.to_sdk_options(),
        )
        print(result["UAL"])
    """

    def __init__(self, config: PublisherConfig, sdk: Optional[Any] = None):
        """
        Args:
            config: Validated publisher configuration
            sdk: Pre-built SDK instance (tests, custom providers)
        """
        self.config = config
        self._sdk = sdk
        self._connected = sdk is not None

        log.info(
            f"DkgGraphClient initialized - "
            f"node={self.node_uri}, blockchain={config.blockchain.name}"
        )

    @property
    def node_uri(self) -> str:
        """Node endpoint with port; USE_SSL forces the https scheme."""
        endpoint = self.config.endpoint
        if self.config.use_ssl:
            host = endpoint.split("://", 1)[-1]
            endpoint = f"https://{host}"
        return f"{endpoint}:{self.config.port}"

    async def connect(self):
        """Build the SDK client."""
        if self._connected:
            log.debug("Already connected to DKG node")
            return

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._connect_sync)

        log.info(f"Connected to DKG node at {self.node_uri}")

    def _connect_sync(self):
        """Synchronous SDK construction (called in executor)."""
        # The SDK reads the signer key from the PRIVATE_KEY environment variable
        if os.environ.get("PRIVATE_KEY") != self.config.blockchain.private_key:
            raise ConfigValidationError(
                "Invalid configuration: PRIVATE_KEY in the environment does not match "
                "'blockchain.private_key' (the DKG SDK signs with the environment key)"
            )
        try:
            from dkg import DKG
            from dkg.providers import BlockchainProvider, NodeHTTPProvider
        except ImportError as e:
            raise ImportError(
                "dkg SDK required for DkgGraphClient. "
                "Install with: pip install \"kapub[dkg]\""
            ) from e

        node_provider = NodeHTTPProvider(
            endpoint_uri=self.node_uri,
            api_version=self.config.node_api_version,
        )
        blockchain_provider = BlockchainProvider(self.config.blockchain.name)
        self._sdk = DKG(
            node_provider,
            blockchain_provider,
            {
                "max_number_of_retries": self.config.max_number_of_retries,
                "frequency": self.config.frequency,
            },
        )
        self._connected = True

    async def close(self):
        """Drop the SDK client."""
        if not self._connected:
            return
        self._connected = False
        self._sdk = None
        log.info("Disconnected from DKG node")

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        if not self._connected:
            raise RuntimeError("Not connected to DKG node. Call connect() first.")

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    async def node_info(self) -> Dict[str, Any]:
        info = await self._run(lambda: self._sdk.node.info)
        log.debug("Node info received", info=info)
        return info

    async def create_asset(
        self,
        content: Dict[str, Any],
        options: Dict[str, Any],
    ) -> Dict[str, Any]:
        log.info(
            "Creating knowledge asset",
            epochs_num=options.get("epochs_num"),
            max_number_of_retries=options.get("max_number_of_retries"),
        )
        return await self._run(self._sdk.asset.create, content, options)

    async def submit_to_paranet(self, ual: str, paranet_ual: str) -> Dict[str, Any]:
        log.info("Submitting asset to paranet", ual=ual, paranet_ual=paranet_ual)
        return await self._run(self._sdk.asset.submit_to_paranet, ual, paranet_ual)

    async def query(
        self,
        query_text: str,
        query_type: str = "SELECT",
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        log.debug(f"Query {query_type}: {query_text[:100]}...")
        result = await self._run(self._sdk.graph.query, query_text, options or {})

        # Some SDK versions wrap rows in {"data": [...]}
        if isinstance(result, dict):
            return result.get("data")
        return result

    async def get_asset(self, ual: str, content_type: str = "all") -> Dict[str, Any]:
        return await self._run(self._sdk.asset.get, ual, {"content_type": content_type})

    async def create_paranet(self, ual: str, options: Dict[str, Any]) -> Dict[str, Any]:
        log.info("Creating paranet", ual=ual, name=options.get("paranet_name"))
        return await self._run(self._sdk.paranet.create, ual, options)
