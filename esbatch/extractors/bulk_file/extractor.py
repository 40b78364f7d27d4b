# esbatch/extractors/bulk_file/extractor.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from esbatch.core.errors import DecodeError
from esbatch.core.extractor_base import LineFileExtractor
from esbatch.core.operations import OpType
from esbatch.core.registry import SOURCES, register

# actions followed by a document line
_WITH_DOCUMENT = (OpType.INDEX.value, OpType.CREATE.value, OpType.UPDATE.value)


@dataclass(frozen=True)
class BulkEntry:
    """One logical unit of a bulk file: an action line and, except for delete, its document line."""

    action: str
    metadata: Dict[str, Any]
    raw: str
    position: int
    document: Optional[Dict[str, Any]] = None
    document_raw: Optional[str] = None
    document_position: Optional[int] = None


@register("bulk", kind=SOURCES)
class BulkFileExtractor(LineFileExtractor):
    """
    Streams entries from an Elasticsearch bulk file
    (https://www.elastic.co/guide/en/elasticsearch/reference/current/docs-bulk.html).
    Lines may be JSON or Ion text; the encoding is detected from the first line.
    """

    def iter_records(self) -> Iterator[BulkEntry]:
        lines = self.iter_lines()
        for position, row in lines:
            data = self.decoder.decode(row, position)
            if len(data) != 1:
                raise DecodeError("Invalid bulk action line", raw=row, position=position)

            action, metadata = next(iter(data.items()))
            if action not in _WITH_DOCUMENT and action != OpType.DELETE.value:
                raise DecodeError("Invalid bulk request type", raw=row, position=position)
            if metadata is None:
                metadata = {}
            if not isinstance(metadata, dict):
                raise DecodeError("Invalid bulk action metadata", raw=row, position=position)

            document = document_raw = document_position = None
            if action in _WITH_DOCUMENT:
                following = next(lines, None)
                if following is None:
                    raise DecodeError(
                        f"Missing document line for '{action}' action", raw=row, position=position
                    )
                document_position, document_raw = following
                document = self.decoder.decode(document_raw, document_position)

            yield BulkEntry(
                action=action,
                metadata=metadata,
                raw=row,
                position=position,
                document=document,
                document_raw=document_raw,
                document_position=document_position,
            )


__all__ = ["BulkFileExtractor", "BulkEntry"]
