# esbatch/storage/file_writer.py
from __future__ import annotations

import logging
import tempfile
from typing import TextIO

from esbatch.core.extractor_base import Record
from esbatch.core.serde import LineFormat, encode_line
from esbatch.core.storage_base import Manifest, StorageWriter
from esbatch.storage.locations import resolve_path, to_uri

logger = logging.getLogger(__name__)


class FileStorageWriter(StorageWriter):
    """
    Writes records to a local file, one value per line (Ion text by default, or JSON lines).
    Without a location, a temporary file is created in open().
    """

    def __init__(
        self,
        location: str | None = None,
        fmt: LineFormat | str = LineFormat.ION,
        encoding: str = "utf-8",
    ):
        self.location = location
        self.format = LineFormat(fmt)
        if self.format is LineFormat.UNDETERMINED:
            raise ValueError("A sink needs an explicit format")
        self.encoding = encoding
        self._stream: TextIO | None = None
        self._records = 0
        self._bytes = 0

    def open(self) -> None:
        if self.location is None:
            handle = tempfile.NamedTemporaryFile(
                mode="w", suffix=f".{self.format.value}", encoding=self.encoding, delete=False
            )
            self.location = handle.name
            self._stream = handle
        else:
            path = resolve_path(self.location)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._stream = path.open("w", encoding=self.encoding)
        self._records = 0
        self._bytes = 0
        logger.debug("Writing %s records to %s", self.format.value, self.location)

    def append(self, record: Record) -> None:
        assert self._stream, "Writer not opened. Call .open() first."
        line = encode_line(record, self.format) + "\n"
        self._stream.write(line)
        self._records += 1
        self._bytes += len(line.encode(self.encoding))

    def finalize(self) -> Manifest:
        assert self._stream, "Writer not opened. Call .open() first."
        self._stream.flush()
        return Manifest(
            parts=[to_uri(self.location)],
            total_records=self._records,
            total_bytes=self._bytes,
        )

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None


__all__ = ["FileStorageWriter"]
