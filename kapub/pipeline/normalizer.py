"""
Content Normalizer
==================

Trasforma un RawInput in uno StructuredEnvelope conforme al template.

- Testo libero: una chiamata al modello generativo, estrazione del primo
  oggetto JSON bilanciato, correzioni post-hoc e validazione minima.
- Documento strutturato: nessuna chiamata al modello, solo wrapping.

L'output del modello è trattato come testo non affidabile: viene sempre
estratto, parsato e validato prima di diventare un envelope.

Esempio:
    normalizer = ContentNormalizer(llm_service)
    envelope = await normalizer.normalize(raw, get_template("event"))
"""

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Optional

from kapub.config.prompts import get_normalize_prompt, get_system_prompt
from kapub.exceptions import TransformError
from kapub.models import RawInput, StructuredEnvelope

if TYPE_CHECKING:
    from kapub.llm.service import LLMService
    from kapub.schemas.templates import SchemaTemplate

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iter_json_blocks(text: str) -> Iterator[str]:
    """
    Genera, in ordine, gli oggetti JSON bilanciati contenuti in un testo.

    Le graffe dentro stringhe JSON (anche con escape) non contano.
    Dopo un blocco chiuso la ricerca riprende dal carattere successivo.

    Args:
        text: Risposta grezza del modello

    Example:
        >>> list(iter_json_blocks('wrapped in { }: {"a": "}"} trailing'))
        ['{ }', '{"a": "}"}']
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = None

        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i
                    break

        if end is None:
            return
        yield text[start:end + 1]
        start = text.find("{", end + 1)


def extract_json_block(text: str) -> Optional[str]:
    """
    Estrae il primo oggetto JSON bilanciato da un testo.

    Returns:
        Sottostringa "{...}" o None se non c'è un oggetto chiuso

    Example:
        >>> extract_json_block('Here: {"a": "}"} trailing {x}')
        '{"a": "}"}'
    """
    return next(iter_json_blocks(text), None)


def _split_partitions(doc: Dict[str, Any]) -> StructuredEnvelope:
    """Mantiene public/private se già presenti, altrimenti tutto è public."""
    public = doc.get("public")
    if isinstance(public, dict):
        private = doc.get("private")
        return StructuredEnvelope(
            public=public,
            private=private if isinstance(private, dict) else None,
        )
    return StructuredEnvelope(public=doc)


class ContentNormalizer:
    """
    Normalizza input grezzi in knowledge asset.

    Non mantiene stato tra un input e l'altro.

    Attributes:
        llm: Servizio generativo (deve esporre `await generate(prompt, system_prompt)`)
        clock: Sorgente dell'ora corrente (UTC), sostituibile nei test
    """

    def __init__(
        self,
        llm: Optional["LLMService"],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.llm = llm
        self.clock = clock or _utc_now

    async def normalize(
        self,
        raw: RawInput,
        template: "SchemaTemplate",
    ) -> StructuredEnvelope:
        """
        Normalizza un singolo input.

        Args:
            raw: Input grezzo
            template: Template JSON-LD target

        Returns:
            StructuredEnvelope pronto per la pubblicazione

        Raises:
            TransformError: Output del modello non estraibile, non parsabile
                o non valido; payload strutturato non oggetto
        """
        if raw.is_free_text:
            return await self._normalize_text(raw, template)
        return self._normalize_structured(raw)

    def _normalize_structured(self, raw: RawInput) -> StructuredEnvelope:
        if not isinstance(raw.payload, dict):
            raise TransformError(
                f"structured payload must be a JSON object, got {type(raw.payload).__name__}"
            )
        return _split_partitions(raw.payload)

    def _build_prompt(self, text: str, template: "SchemaTemplate") -> str:
        return get_normalize_prompt().format(
            template=json.dumps(template.example_document(), indent=2),
            text=text,
            title_field=template.title_field,
            description_field=template.description_field,
            date_field=template.date_field or "datePublished",
        )

    def _first_json_object(self, response: str) -> Dict[str, Any]:
        """
        Primo blocco che decodifica in un oggetto non vuoto.

        Blocchi nella prosa del modello (es. "{ }") vengono saltati.

        Raises:
            TransformError: Nessun blocco, oppure nessun blocco decodificabile
        """
        parse_error = None
        for block in iter_json_blocks(response):
            try:
                doc = json.loads(block)
            except json.JSONDecodeError as e:
                parse_error = parse_error or e
                continue
            if isinstance(doc, dict) and doc:
                return doc

        if parse_error is not None:
            raise TransformError(
                f"Failed to parse JSON-LD from model response: {parse_error}"
            ) from parse_error
        raise TransformError("No valid JSON-LD object found in model response")

    async def _normalize_text(
        self,
        raw: RawInput,
        template: "SchemaTemplate",
    ) -> StructuredEnvelope:
        text = raw.payload
        if not isinstance(text, str):
            raise TransformError("free-text payload must be a string")
        if self.llm is None:
            raise TransformError("no generative model configured for free-text input")

        logger.info(f"Converting text from {raw.identifier} to JSON-LD")

        try:
            response = await self.llm.generate(
                self._build_prompt(text, template),
                system_prompt=get_system_prompt(),
            )
        except Exception as e:
            raise TransformError(f"model call failed: {e}") from e

        doc = self._first_json_object(response or "")
        envelope = _split_partitions(doc)
        public = envelope.public

        description_field = template.description_field
        if public.get(description_field) != text:
            logger.warning(
                f"Generated {description_field} does not match input text "
                f"for {raw.identifier}. Overriding with input text."
            )
            public[description_field] = text

        public.setdefault("@context", template.context)
        public.setdefault("@type", template.schema_type)

        date_field = template.date_field
        if date_field:
            current = public.get(date_field)
            if not current or current == template.date_placeholder:
                public[date_field] = self.clock().strftime(DATE_FORMAT)

        problems = template.validate_document(public)
        if problems:
            raise TransformError(
                f"generated document does not match template '{template.name}': "
                + "; ".join(problems)
            )

        return envelope
