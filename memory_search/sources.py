"""
Text sources: where indexed documents come from.

The indices only ever receive (id, text) arguments. Anything that can produce
documents implements the TextSource protocol and is handed to
SearchIndexHolder.rebuild() / sync(); the engine never knows whether text came
from memory, disk or elsewhere.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Protocol, Sequence, Union, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass
class SourceDocument:
    id: str
    text: str
    title: Optional[str] = None
    type: str = "file"
    path: Optional[str] = None


@runtime_checkable
class TextSource(Protocol):
    """Anything that can list the documents to index"""

    def iter_documents(self) -> Iterable[SourceDocument]:
        ...


def content_hash(text: str) -> str:
    """
    SHA256 of the UTF-8 encoded text (64 hex characters).

    Used to detect changed documents between syncs.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def decode_text(data: bytes, name: str = "<bytes>") -> str:
    """Decode UTF-8, falling back to latin-1 (which never fails)."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"UTF-8 decode failed for {name}, using latin-1")
        return data.decode("latin-1", errors="replace")


class InMemoryTextSource:
    """Documents from a {id: text} mapping"""

    def __init__(self, documents: Dict[str, str], type: str = "memory"):
        self._documents = dict(documents)
        self._type = type

    def iter_documents(self) -> Iterator[SourceDocument]:
        for doc_id, text in self._documents.items():
            yield SourceDocument(id=doc_id, text=text, type=self._type)


class DirectoryTextSource:
    """
    Text files under a directory.

    Document ids are paths relative to the root (POSIX separators), titles
    are file stems.
    """

    def __init__(self, root: Union[str, Path], extensions: Sequence[str] = (".md", ".txt")):
        self.root = Path(root)
        self.extensions = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}

    def iter_documents(self) -> Iterator[SourceDocument]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Source directory not found: {self.root}")

        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue

            relative = path.relative_to(self.root).as_posix()
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning(f"Skipping unreadable file {relative}: {e}")
                continue

            yield SourceDocument(
                id=relative,
                text=decode_text(data, relative),
                title=path.stem,
                type="file",
                path=str(path),
            )
