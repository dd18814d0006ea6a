"""
kapub Models
============

Dataclass condivise da pipeline di pubblicazione e pipeline di query.

Contenuti:
- InputKind: Tipo di input (testo libero o documento strutturato)
- RawInput / FileInput: Input grezzi da pubblicare
- StructuredEnvelope: Knowledge asset pronto per la pubblicazione
- PublicationOptions: Opzioni di pubblicazione (immutabili per run)
- PublicationOutcome / SubgraphAttachment: Esito per singolo item
- QueryRequest / StructuredQuery / QueryResultSet: Pipeline di query
- BatchReport: Riepilogo di un batch
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Union

from kapub.exceptions import SourceReadError

if TYPE_CHECKING:
    from kapub.config.settings import PublisherConfig


class InputKind(Enum):
    """Tipo dichiarato di un input."""

    FREE_TEXT = "free-text"
    STRUCTURED = "structured"


# Estensione file → tipo input
EXTENSION_KINDS: Dict[str, InputKind] = {
    ".txt": InputKind.FREE_TEXT,
    ".json": InputKind.STRUCTURED,
    ".jsonld": InputKind.STRUCTURED,
}


def kind_for_path(path: Union[str, Path]) -> Optional[InputKind]:
    """Tipo input dall'estensione del file (None se non supportata)."""
    return EXTENSION_KINDS.get(Path(path).suffix.lower())


@dataclass(frozen=True)
class RawInput:
    """
    Input grezzo, immutabile una volta letto.

    Attributes:
        identifier: Nome file o etichetta della fonte
        payload: Testo (FREE_TEXT) o albero JSON già parsato (STRUCTURED)
        kind: Tipo dichiarato
    """
    identifier: str
    payload: Union[str, Dict[str, Any]]
    kind: InputKind

    @property
    def is_free_text(self) -> bool:
        return self.kind == InputKind.FREE_TEXT


@dataclass(frozen=True)
class FileInput:
    """
    Riferimento lazy a un file della directory asset.

    La lettura avviene solo in read(), dentro il confine di isolamento
    dell'item: un file illeggibile o un JSON malformato fallisce solo
    quell'item.

    Attributes:
        identifier: Nome del file
        path: Path completo
        kind: Tipo derivato dall'estensione
    """
    identifier: str
    path: Path
    kind: InputKind

    def read(self) -> RawInput:
        """
        Legge il file e costruisce il RawInput.

        Raises:
            SourceReadError: File illeggibile o JSON malformato
        """
        try:
            # bytes + decode: i fine riga CRLF restano intatti
            text = self.path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(f"read error: {e}") from e

        if self.kind == InputKind.FREE_TEXT:
            return RawInput(self.identifier, text, self.kind)

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise SourceReadError(f"parse error: {e}") from e

        return RawInput(self.identifier, payload, self.kind)


@dataclass
class StructuredEnvelope:
    """
    Knowledge asset pubblicabile.

    Attributes:
        public: Partizione pubblica (sempre presente, visibile a tutto il grafo)
        private: Partizione privata (solo holder autorizzati), opzionale
    """
    public: Dict[str, Any]
    private: Optional[Dict[str, Any]] = None

    def to_content(self) -> Dict[str, Any]:
        """Body da inviare al nodo DKG."""
        content: Dict[str, Any] = {"public": self.public}
        if self.private is not None:
            content["private"] = self.private
        return content


@dataclass(frozen=True)
class PublicationOptions:
    """
    Opzioni di pubblicazione, costruite una volta per run.

    Il budget di retry e la frequenza di polling sono passati al nodo:
    kapub non aggiunge retry propri.

    Attributes:
        epochs_num: Numero di epoch di persistenza
        max_number_of_retries: Budget retry del nodo
        frequency: Frequenza di polling (secondi)
        content_type: Tipo contenuto dichiarato ("all", "public", "private")
        blockchain_name: Identificatore rete (es. "base:84532")
        private_key: Credenziale del signer
    """
    epochs_num: int
    max_number_of_retries: int
    frequency: int
    content_type: str
    blockchain_name: str
    private_key: str = field(repr=False)

    @classmethod
    def from_config(cls, config: "PublisherConfig") -> "PublicationOptions":
        return cls(
            epochs_num=config.epochs_num,
            max_number_of_retries=config.max_number_of_retries,
            frequency=config.frequency,
            content_type=config.content_type,
            blockchain_name=config.blockchain.name,
            private_key=config.blockchain.private_key,
        )

    def to_sdk_options(self) -> Dict[str, Any]:
        """Opzioni nel formato atteso dal client DKG."""
        return {
            "epochs_num": self.epochs_num,
            "max_number_of_retries": self.max_number_of_retries,
            "frequency": self.frequency,
            "content_type": self.content_type,
            "blockchain": {
                "name": self.blockchain_name,
                "private_key": self.private_key,
            },
        }

    def to_query_options(self) -> Dict[str, Any]:
        """Opzioni per le query SPARQL (senza epoch e content type)."""
        return {
            "max_number_of_retries": self.max_number_of_retries,
            "frequency": self.frequency,
            "blockchain": {
                "name": self.blockchain_name,
                "private_key": self.private_key,
            },
        }


class OutcomeStatus(Enum):
    PUBLISHED = "published"
    FAILED = "failed"


@dataclass
class SubgraphAttachment:
    """
    Esito della submit di un asset a un paranet.

    Non modifica mai lo stato del PublicationOutcome a cui appartiene.
    """
    paranet_ual: str
    success: bool
    error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


@dataclass
class PublicationOutcome:
    """
    Esito di pubblicazione per un singolo input.

    Attributes:
        status: PUBLISHED o FAILED
        identifier: Identificatore dell'input
        ual: Locator dell'asset pubblicato (solo PUBLISHED)
        reason: Motivo del fallimento (solo FAILED)
        explorer_url: Link all'explorer DKG
        attachment: Esito submit al paranet (se configurato)
    """
    status: OutcomeStatus
    identifier: str
    ual: Optional[str] = None
    reason: Optional[str] = None
    explorer_url: Optional[str] = None
    attachment: Optional[SubgraphAttachment] = None

    @classmethod
    def published(
        cls,
        identifier: str,
        ual: str,
        explorer_url: Optional[str] = None,
    ) -> "PublicationOutcome":
        return cls(
            status=OutcomeStatus.PUBLISHED,
            identifier=identifier,
            ual=ual,
            explorer_url=explorer_url,
        )

    @classmethod
    def failed(cls, identifier: str, reason: str) -> "PublicationOutcome":
        return cls(status=OutcomeStatus.FAILED, identifier=identifier, reason=reason)

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.PUBLISHED


@dataclass(frozen=True)
class QueryRequest:
    """Domanda in linguaggio naturale."""
    text: str


class QueryOrigin(Enum):
    GENERATED = "generated"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class StructuredQuery:
    """
    Query SPARQL pronta per l'esecuzione.

    Una query GENERATED non è validata fino all'esecuzione;
    una FALLBACK è statica e nota come valida.
    """
    text: str
    origin: QueryOrigin

    @classmethod
    def generated(cls, text: str) -> "StructuredQuery":
        return cls(text=text, origin=QueryOrigin.GENERATED)

    @classmethod
    def fallback(cls, text: str) -> "StructuredQuery":
        return cls(text=text, origin=QueryOrigin.FALLBACK)

    @property
    def is_fallback(self) -> bool:
        return self.origin == QueryOrigin.FALLBACK


@dataclass
class QueryResultSet:
    """
    Righe restituite dal grafo, nell'ordine del nodo.

    Attributes:
        rows: Mapping variabile proiettata → valore stringa
        query: Query effettivamente eseguita con successo
    """
    rows: List[Dict[str, str]]
    query: StructuredQuery

    @property
    def used_fallback(self) -> bool:
        return self.query.is_fallback

    def formatted(self) -> List[str]:
        """Una riga "chiave: valore, chiave: valore" per ogni risultato."""
        return [
            ", ".join(f"{key}: {value}" for key, value in row.items())
            for row in self.rows
        ]

    def __len__(self) -> int:
        return len(self.rows)


@dataclass
class BatchReport:
    """
    Riepilogo di un batch di pubblicazione.

    Example:
        >>> outcomes = await orchestrator.run(items, template, options)
        >>> print(BatchReport(outcomes).summary())
    """
    outcomes: List[PublicationOutcome] = field(default_factory=list)

    @property
    def published(self) -> List[PublicationOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[PublicationOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def attachment_failures(self) -> List[PublicationOutcome]:
        return [
            o for o in self.outcomes
            if o.attachment is not None and not o.attachment.success
        ]

    def __iter__(self) -> Iterator[PublicationOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def summary(self) -> str:
        """Riepilogo testuale, una riga per item."""
        lines = [
            "═" * 60,
            "PUBLICATION BATCH",
            "═" * 60,
            f"Item processati: {len(self.outcomes)}",
            f"Pubblicati:      {len(self.published)}",
            f"Falliti:         {len(self.failed)}",
            "─" * 60,
        ]
        for outcome in self.outcomes:
            if outcome.success:
                lines.append(f"  ✓ {outcome.identifier}: {outcome.ual}")
                if outcome.attachment is not None and not outcome.attachment.success:
                    lines.append(
                        f"    ! paranet {outcome.attachment.paranet_ual}: "
                        f"{outcome.attachment.error}"
                    )
            else:
                lines.append(f"  ✗ {outcome.identifier}: {outcome.reason}")
        lines.append("═" * 60)
        return "\n".join(lines)
