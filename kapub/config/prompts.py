"""
Prompt Configuration
====================

Carica i prompt del modello generativo da prompts.yaml.

Se il file manca o una chiave non è presente si usano i prompt di default,
così normalizer e query constructor funzionano anche senza YAML.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Cache per configurazione YAML
_PROMPTS_CACHE: Optional[Dict[str, Any]] = None

PROMPTS_PATH = Path(__file__).parent / "prompts.yaml"

DEFAULT_SYSTEM_PROMPT = "Follow the output format exactly."

DEFAULT_NORMALIZE_PROMPT = """Convert the input into this JSON-LD structure:
{template}

Put a short title in "{title_field}", the input text verbatim in "{description_field}"
and a date (or the current time) in "{date_field}".

INPUT:
{text}

Only output the JSON-LD object."""

DEFAULT_QUERY_PROMPT = """Write a SPARQL SELECT DISTINCT query over documents shaped like:
{template}

Example:
{example_query}

Project only {projection}. Question: {question}

Answer with a ```sparql``` code block."""


def load_prompts() -> Dict[str, Any]:
    """Carica configurazione prompt da YAML (una sola volta)."""
    global _PROMPTS_CACHE

    if _PROMPTS_CACHE is None:
        if PROMPTS_PATH.exists():
            with open(PROMPTS_PATH, "r", encoding="utf-8") as f:
                _PROMPTS_CACHE = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Config file non trovato: {PROMPTS_PATH}")
            _PROMPTS_CACHE = {}

    return _PROMPTS_CACHE


def get_system_prompt() -> str:
    return load_prompts().get("system_prompt", DEFAULT_SYSTEM_PROMPT)


def get_normalize_prompt() -> str:
    """Prompt per la conversione testo libero → JSON-LD."""
    return (load_prompts().get("normalize") or {}).get("prompt", DEFAULT_NORMALIZE_PROMPT)


def get_query_prompt() -> str:
    """Prompt per la generazione della query SPARQL."""
    return (load_prompts().get("query") or {}).get("prompt", DEFAULT_QUERY_PROMPT)
