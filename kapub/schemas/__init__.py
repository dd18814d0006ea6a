"""
kapub Schema Templates
======================

Template JSON-LD (Event, SocialMediaPosting, Dataset) caricati da YAML.

Esempio:
    from kapub.schemas import get_template

    template = get_template("social_media_posting")
    print(template.projection)  # ["headline", "articleBody"]
"""

from kapub.schemas.templates import (
    FieldKind,
    FieldSpec,
    SchemaTemplate,
    get_template,
    load_templates,
)

__all__ = [
    "FieldKind",
    "FieldSpec",
    "SchemaTemplate",
    "get_template",
    "load_templates",
]
