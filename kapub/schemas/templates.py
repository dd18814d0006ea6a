"""
Schema Templates
================

Template JSON-LD usati sia come scaffolding per il prompt del modello
generativo sia come validatore minimo del suo output.

I template sono caricati da templates.yaml per permettere modifiche
senza toccare il codice.

Esempio:
    from kapub.schemas import get_template

    template = get_template("event")
    prompt_shape = template.example_document()
    problems = template.validate_document(doc)
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from kapub.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

# Cache per configurazione YAML
_TEMPLATES_CACHE: Optional[Dict[str, "SchemaTemplate"]] = None

TEMPLATES_PATH = Path(__file__).parent / "templates.yaml"


class FieldKind(str, Enum):
    """Tipi di valore ammessi nei campi di un template."""
    STRING = "string"
    DATE = "date"
    OBJECT = "object"
    LIST = "list"


_KIND_TYPES = {
    FieldKind.STRING: str,
    FieldKind.DATE: str,
    FieldKind.OBJECT: dict,
    FieldKind.LIST: list,
}


class FieldSpec(BaseModel):
    """
    Singolo campo top-level di un template.

    Esempio:
        - name: startDate
          kind: date
          required: true
          example: "yyyy-mm-ddTHH:mm:ssZ"
    """
    name: str
    kind: FieldKind = FieldKind.STRING
    required: bool = False
    items: Optional[FieldKind] = Field(
        default=None, description="Tipo degli elementi per i campi list"
    )
    example: Any = None


class SchemaTemplate(BaseModel):
    """
    Forma target di un knowledge asset.

    Attributes:
        name: Nome del template (chiave in templates.yaml)
        schema_type: @type schema.org (es. "Event")
        context: @context JSON-LD
        title_field: Campo titolo sintetizzato dal modello
        description_field: Campo che deve contenere il testo originale
        date_field: Campo data (default all'ora corrente se assente)
        projection: I due campi canonici proiettati dalle query
        field_specs: Campi top-level con tipo ed esempio
        example_query: Query SPARQL di esempio per il prompt
        fallback_query: Query statica nota come valida
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    schema_type: str = Field(alias="type")
    context: str = "http://schema.org"
    title_field: str
    description_field: str
    date_field: Optional[str] = None
    projection: List[str]
    field_specs: List[FieldSpec] = Field(alias="fields")
    example_query: str
    fallback_query: str

    @field_validator("projection")
    @classmethod
    def two_canonical_fields(cls, v: List[str]) -> List[str]:
        if len(v) != 2:
            raise ValueError("projection must list exactly two fields")
        return v

    @property
    def date_placeholder(self) -> Optional[str]:
        """Valore esempio del campo data (placeholder da sostituire)."""
        spec = self.get_field(self.date_field) if self.date_field else None
        return spec.example if spec is not None else None

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.field_specs:
            if spec.name == name:
                return spec
        return None

    def example_document(self) -> Dict[str, Any]:
        """Documento JSON-LD di esempio da incorporare nel prompt."""
        doc: Dict[str, Any] = {
            "@context": self.context,
            "@type": self.schema_type,
        }
        for spec in self.field_specs:
            doc[spec.name] = spec.example
        return doc

    def validate_document(self, doc: Any) -> List[str]:
        """
        Validazione minima post-hoc.

        Controlla che i campi required siano presenti e che i campi
        dichiarati abbiano il tipo atteso.

        Args:
            doc: Partizione public del documento generato

        Returns:
            Lista di problemi (vuota se valido)
        """
        if not isinstance(doc, dict):
            return [f"document must be an object, got {type(doc).__name__}"]

        problems = []
        for spec in self.field_specs:
            if spec.name not in doc or doc[spec.name] is None:
                if spec.required:
                    problems.append(f"missing required field '{spec.name}'")
                continue

            value = doc[spec.name]
            expected = _KIND_TYPES[spec.kind]
            if not isinstance(value, expected):
                problems.append(
                    f"field '{spec.name}' should be {spec.kind.value}, "
                    f"got {type(value).__name__}"
                )
                continue

            if spec.kind == FieldKind.LIST and spec.items is not None:
                item_type = _KIND_TYPES[spec.items]
                if not all(isinstance(item, item_type) for item in value):
                    problems.append(
                        f"field '{spec.name}' should contain only {spec.items.value} items"
                    )

        return problems


def load_templates(path: Optional[Path] = None) -> Dict[str, SchemaTemplate]:
    """
    Carica i template da YAML.

    Il file di default viene letto una sola volta e messo in cache.

    Args:
        path: File YAML alternativo (non messo in cache)

    Returns:
        Mapping nome → SchemaTemplate
    """
    global _TEMPLATES_CACHE

    if path is None and _TEMPLATES_CACHE is not None:
        return _TEMPLATES_CACHE

    source = path or TEMPLATES_PATH
    with open(source, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    templates = {
        name: SchemaTemplate(name=name, **data)
        for name, data in (raw.get("templates") or {}).items()
    }
    logger.debug(f"Caricati {len(templates)} template da {source}")

    if path is None:
        _TEMPLATES_CACHE = templates
    return templates


def get_template(name: str) -> SchemaTemplate:
    """
    Restituisce un template per nome.

    Raises:
        ConfigValidationError: Template non definito
    """
    templates = load_templates()
    if name not in templates:
        raise ConfigValidationError(
            f"Unknown schema template '{name}'. Available: {sorted(templates)}"
        )
    return templates[name]
