"""
Eccezioni kapub
===============

Tassonomia degli errori della pipeline di pubblicazione e di query.

Fatali (interrompono l'esecuzione prima di processare item):
- ConfigValidationError
- ConnectivityError

Per-item (isolati dal BatchOrchestrator):
- SourceReadError
- TransformError / GenerationError
- PublicationError

Query:
- GenerationError (recuperabile con la query di fallback)
- QueryError (fallback esaurito)
"""


class KapubError(Exception):
    """Base per tutti gli errori kapub."""
    pass


class ConfigValidationError(KapubError):
    """Configurazione mancante o malformata, rilevata prima dell'avvio."""
    pass


class ConnectivityError(KapubError):
    """Il nodo DKG non risponde al probe iniziale."""
    pass


class SourceReadError(KapubError):
    """File di input illeggibile o documento strutturato malformato."""
    pass


class TransformError(KapubError):
    """Il contenuto non può essere normalizzato in un envelope valido."""
    pass


class GenerationError(TransformError):
    """
    Il modello generativo non ha prodotto un blocco estraibile.

    fallback_query: query statica da sostituire, valorizzata da
    QueryConstructor.construct prima di rilanciare.
    """
    fallback_query = None


class PublicationError(KapubError):
    """Pubblicazione di un knowledge asset fallita dopo i retry del nodo."""
    pass


class QueryError(KapubError):
    """Query fallita anche dopo il tentativo con la query di fallback."""
    pass


class LLMServiceError(KapubError):
    """Errore di trasporto o risposta invalida dal servizio LLM."""
    pass
