"""
Input Sources
=============

Fonti degli input da pubblicare.

Una fonte produce riferimenti lazy (FileInput): la lettura vera avviene
dentro il confine di isolamento dell'item, così un file illeggibile fa
fallire solo quell'item e non l'intero batch.

Esempio implementazione:
    class ListSource(BaseInputSource):
        @property
        def source_name(self) -> str:
            return "list"

        async def fetch(self) -> AsyncIterator[InputItem]:
            for i, text in enumerate(self.texts):
                yield RawInput(f"item-{i}", text, InputKind.FREE_TEXT)
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncIterator, Iterable, List, Optional, Union

from kapub.exceptions import SourceReadError
from kapub.models import EXTENSION_KINDS, FileInput, RawInput, kind_for_path

logger = logging.getLogger(__name__)

InputItem = Union[RawInput, FileInput]


class BaseInputSource(ABC):
    """
    Interfaccia base per fonti di input.

    Ogni fonte deve implementare:
    - source_name: Nome della fonte (logging)
    - fetch: Generator asincrono di RawInput o FileInput
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        pass

    @abstractmethod
    async def fetch(self) -> AsyncIterator[InputItem]:
        """
        Produce gli input uno alla volta.

        Yields:
            RawInput o FileInput, nell'ordine della fonte
        """
        pass
        yield  # type: ignore

    async def collect(self) -> List[InputItem]:
        """Materializza tutti gli input della fonte."""
        return [item async for item in self.fetch()]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.source_name})>"


class DirectorySource(BaseInputSource):
    """
    Enumera i file di una directory, ordinati per nome.

    Il tipo di input è derivato dall'estensione: .txt è testo libero,
    .json e .jsonld sono documenti strutturati. Gli altri file sono ignorati.

    Attributes:
        path: Directory degli asset
        extensions: Estensioni accettate (default: tutte quelle note)

    Example:
        >>> source = DirectorySource("assets")
        >>> items = await source.collect()
        >>> [i.identifier for i in items]
        ['a.json', 'b.txt', 'c.json']
    """

    def __init__(
        self,
        path: Union[str, Path],
        extensions: Optional[Iterable[str]] = None,
    ):
        self.path = Path(path)
        self.extensions = {
            ext.lower() for ext in (extensions or EXTENSION_KINDS.keys())
        }

    @property
    def source_name(self) -> str:
        return f"directory:{self.path}"

    def _list_files(self) -> List[Path]:
        if not self.path.is_dir():
            raise SourceReadError(f"Failed to read assets directory: {self.path}")

        try:
            entries = sorted(self.path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise SourceReadError(f"Failed to read assets directory: {self.path}: {e}") from e

        return [
            p for p in entries
            if p.is_file() and p.suffix.lower() in self.extensions
        ]

    async def fetch(self) -> AsyncIterator[FileInput]:
        """
        Raises:
            SourceReadError: Directory mancante o non leggibile (prima di
                produrre qualsiasi item)
        """
        files = self._list_files()
        if not files:
            logger.info(f"No asset files found in directory: {self.path}")

        for file_path in files:
            kind = kind_for_path(file_path)
            if kind is None:
                continue
            yield FileInput(identifier=file_path.name, path=file_path, kind=kind)
