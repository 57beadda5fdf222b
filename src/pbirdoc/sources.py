"""File sources that feed (relative_path, raw_text) pairs to the normalizer."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from pbirdoc.config import settings


logger = logging.getLogger(__name__)

RawDocument = tuple[str, Union[str, bytes]]


class DirectoryFileSource:
    """Reads every JSON document below a report folder.

    All files are read before iteration yields anything, so callers always
    see a complete document set. Reads run on a thread pool.
    """

    def __init__(
        self,
        root: Union[str, Path],
        max_workers: Optional[int] = None,
        encoding: Optional[str] = None,
    ):
        """Initialize the file source.

        Args:
            root: Report folder (the one containing `definition/`).
            max_workers: Read concurrency. Defaults to settings.max_workers.
            encoding: Text encoding. Defaults to settings.encoding.
        """
        self.root = Path(root)
        if not self.root.exists():
            raise FileNotFoundError(f"Report folder not found: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Not a directory: {self.root}")

        self.max_workers = max_workers or settings.max_workers
        self.encoding = encoding or settings.encoding

    def paths(self) -> list[Path]:
        """Return every *.json file below the root, sorted."""
        return sorted(p for p in self.root.rglob("*.json") if p.is_file())

    def _read(self, path: Path) -> RawDocument:
        relative = path.relative_to(self.root).as_posix()
        try:
            return relative, path.read_text(encoding=self.encoding)
        except UnicodeDecodeError:
            # Leave decoding to the reader so the failure is recorded against the path
            return relative, path.read_bytes()

    def __iter__(self) -> Iterator[RawDocument]:
        paths = self.paths()
        logger.debug("Reading %d JSON files from %s", len(paths), self.root)
        if self.max_workers <= 1 or len(paths) <= 1:
            documents = [self._read(p) for p in paths]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                documents = list(executor.map(self._read, paths))
        return iter(documents)


class MemoryFileSource:
    """Serves documents from an in-memory mapping of path to text."""

    def __init__(self, documents: Union[dict[str, Union[str, bytes]], Iterable[RawDocument]]):
        items = documents.items() if isinstance(documents, dict) else documents
        self.documents: list[RawDocument] = list(items)

    def __iter__(self) -> Iterator[RawDocument]:
        return iter(list(self.documents))

    def __len__(self) -> int:
        return len(self.documents)
