"""
Publisher Configuration
=======================

Configurazione immutabile per una run di pubblicazione o di query.

Viene costruita una sola volta all'avvio (da environment o da mapping) e
passata esplicitamente ai componenti: nessun componente legge variabili
d'ambiente per conto proprio.

Usage:
    from kapub.config import PublisherConfig

    config = PublisherConfig.from_env()
    config.validate()

Environment Variables:
    OTNODE_HOST: Endpoint del nodo DKG (default: http://localhost)
    OTNODE_PORT: Porta del nodo (default: 8900)
    BLOCKCHAIN_NAME: Rete blockchain (default: base:84532)
    PRIVATE_KEY: Chiave del signer (obbligatoria)
    USE_SSL: "true" per abilitare SSL
    MAX_NUMBER_OF_RETRIES: Budget retry del nodo (default: 300)
    FREQUENCY: Frequenza polling in secondi (default: 2)
    EPOCHS_NUM: Epoch di persistenza (default: 2)
    CONTENT_TYPE: Tipo contenuto (default: all)
    PARANET_UAL: UAL del paranet target (opzionale)
    ASSETS_DIR: Directory input (default: assets)
    SCHEMA_TEMPLATE: Template JSON-LD (default: event)
    LLM_MODEL: Modello OpenRouter (default: google/gemini-2.5-flash)
    OPENROUTER_API_KEY: API key OpenRouter
    DKG_EXPLORER_NETWORK: testnet | mainnet (default: testnet)
    PROPAGATION_WAIT_SECONDS: Attesa prima di query su paranet (default: 0.1)
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from kapub.exceptions import ConfigValidationError

# did:dkg:<chain>:<chain_id>/<contract>/<collection>/<asset>
PARANET_UAL_PATTERN = re.compile(
    r"^did:dkg:[a-z0-9_-]+:\d+/0x[a-fA-F0-9]{40}/\d+/\d+$"
)

DKG_EXPLORER_LINKS: Dict[str, str] = {
    "testnet": "https://dkg-testnet.origintrail.io/explore?ual=",
    "mainnet": "https://dkg.origintrail.io/explore?ual=",
}


def _get_env_str(env: Mapping[str, str], key: str, default: str) -> str:
    """Legge variabile ambiente come stringa."""
    return env.get(key, default)


def _get_env_int(env: Mapping[str, str], key: str, default: int) -> int:
    """Legge variabile ambiente come intero (default se vuota o invalida)."""
    try:
        return int(env.get(key, default))
    except (TypeError, ValueError):
        return default


def _get_env_float(env: Mapping[str, str], key: str, default: float) -> float:
    """Legge variabile ambiente come float (default se vuota o invalida)."""
    try:
        return float(env.get(key, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class BlockchainConfig:
    """
    Sezione blockchain della configurazione.

    Attributes:
        name: Identificatore rete (es. "base:84532", "otp:20430")
        private_key: Chiave del signer, mai loggata
    """
    name: str
    private_key: str = field(repr=False)


@dataclass(frozen=True)
class PublisherConfig:
    """
    Configurazione completa di kapub.

    Attributes:
        endpoint: Endpoint HTTP del nodo DKG
        port: Porta del nodo (stringa, come da .env)
        blockchain: Sezione blockchain (rete + signer)
        use_ssl: Connessione SSL al nodo
        node_api_version: Versione API del nodo
        max_number_of_retries: Budget retry delegato al nodo
        frequency: Frequenza di polling del nodo (secondi)
        epochs_num: Epoch di persistenza degli asset
        content_type: Tipo contenuto dichiarato
        paranet_ual: Paranet a cui sottomettere gli asset (opzionale)
        assets_dir: Directory degli input
        schema_template: Nome del template JSON-LD
        llm_model: Modello per generazione
        llm_api_key: API key del servizio LLM
        llm_temperature: Temperatura di generazione
        explorer_network: Rete dell'explorer per i link
        propagation_wait_seconds: Attesa prima di interrogare un paranet
    """
    endpoint: str = "http://localhost"
    port: str = "8900"
    blockchain: BlockchainConfig = field(
        default_factory=lambda: BlockchainConfig(name="base:84532", private_key="")
    )
    use_ssl: bool = False
    node_api_version: str = "v1"
    max_number_of_retries: int = 300
    frequency: int = 2
    epochs_num: int = 2
    content_type: str = "all"
    paranet_ual: Optional[str] = None
    assets_dir: str = "assets"
    schema_template: str = "event"
    llm_model: str = "google/gemini-2.5-flash"
    llm_api_key: Optional[str] = field(default=None, repr=False)
    llm_temperature: float = 0.0
    explorer_network: str = "testnet"
    propagation_wait_seconds: float = 0.1

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "PublisherConfig":
        """
        Costruisce la config dalle variabili d'ambiente.

        Args:
            env: Mapping da usare al posto di os.environ (per i test)
        """
        env = os.environ if env is None else env
        return cls(
            endpoint=_get_env_str(env, "OTNODE_HOST", "http://localhost"),
            port=_get_env_str(env, "OTNODE_PORT", "8900"),
            blockchain=BlockchainConfig(
                name=_get_env_str(env, "BLOCKCHAIN_NAME", "base:84532"),
                private_key=_get_env_str(env, "PRIVATE_KEY", ""),
            ),
            use_ssl=_get_env_str(env, "USE_SSL", "false").lower() == "true",
            max_number_of_retries=_get_env_int(env, "MAX_NUMBER_OF_RETRIES", 300),
            frequency=_get_env_int(env, "FREQUENCY", 2),
            epochs_num=_get_env_int(env, "EPOCHS_NUM", 2),
            content_type=_get_env_str(env, "CONTENT_TYPE", "all"),
            paranet_ual=_get_env_str(env, "PARANET_UAL", "") or None,
            assets_dir=_get_env_str(env, "ASSETS_DIR", "assets"),
            schema_template=_get_env_str(env, "SCHEMA_TEMPLATE", "event"),
            llm_model=_get_env_str(env, "LLM_MODEL", "google/gemini-2.5-flash"),
            llm_api_key=_get_env_str(env, "OPENROUTER_API_KEY", "") or None,
            explorer_network=_get_env_str(env, "DKG_EXPLORER_NETWORK", "testnet"),
            propagation_wait_seconds=_get_env_float(env, "PROPAGATION_WAIT_SECONDS", 0.1),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PublisherConfig":
        """
        Costruisce la config da un dict (es. file YAML/JSON).

        La sezione "blockchain" viene convertita solo se è un dict:
        altri valori restano tali e vengono rifiutati da validate().
        """
        values = dict(data)
        blockchain = values.get("blockchain")
        if isinstance(blockchain, Mapping):
            values["blockchain"] = BlockchainConfig(
                name=blockchain.get("name", ""),
                private_key=blockchain.get("private_key", blockchain.get("privateKey", "")),
            )
        return cls(**values)

    def validate(self, require_paranet: bool = False) -> None:
        """
        Valida la configurazione prima di qualsiasi lavoro.

        Args:
            require_paranet: Se True, PARANET_UAL è obbligatorio

        Raises:
            ConfigValidationError: Al primo campo invalido
        """
        for name in ("endpoint", "port"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigValidationError(
                    f"Invalid configuration: Missing or invalid value for '{name}'"
                )

        if not isinstance(self.blockchain, BlockchainConfig):
            raise ConfigValidationError(
                "Invalid configuration: 'blockchain' must be an object"
            )
        for name in ("name", "private_key"):
            value = getattr(self.blockchain, name)
            if not isinstance(value, str) or not value:
                raise ConfigValidationError(
                    f"Invalid configuration: Missing or invalid value for 'blockchain.{name}'"
                )

        for name in ("max_number_of_retries", "frequency", "epochs_num"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigValidationError(
                    f"Invalid configuration: '{name}' must be a positive integer"
                )

        if self.explorer_network not in DKG_EXPLORER_LINKS:
            raise ConfigValidationError(
                f"Invalid configuration: unknown explorer network '{self.explorer_network}'"
            )

        if self.paranet_ual is None:
            if require_paranet:
                raise ConfigValidationError(
                    "Invalid configuration: 'PARANET_UAL' must be a string"
                )
        elif not isinstance(self.paranet_ual, str) or not PARANET_UAL_PATTERN.match(self.paranet_ual):
            raise ConfigValidationError(
                "Invalid configuration: 'PARANET_UAL' has an invalid format"
            )

    @property
    def explorer_base_url(self) -> str:
        return DKG_EXPLORER_LINKS.get(self.explorer_network, DKG_EXPLORER_LINKS["testnet"])

    def to_safe_dict(self) -> Dict[str, Any]:
        """Serializza config per logging (segreti esclusi)."""
        return {
            "endpoint": self.endpoint,
            "port": self.port,
            "blockchain": getattr(self.blockchain, "name", None),
            "use_ssl": self.use_ssl,
            "max_number_of_retries": self.max_number_of_retries,
            "frequency": self.frequency,
            "epochs_num": self.epochs_num,
            "content_type": self.content_type,
            "paranet_ual": self.paranet_ual,
            "schema_template": self.schema_template,
            "llm_model": self.llm_model,
        }
