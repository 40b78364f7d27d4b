# esbatch/transformers/bulk_actions.py
from __future__ import annotations

from typing import Any, Dict, Optional

from esbatch.core.errors import DecodeError
from esbatch.core.operations import OpType, WriteOperation
from esbatch.core.registry import MAPPERS, register
from esbatch.core.transformer_base import Transformer
from esbatch.extractors.bulk_file.extractor import BulkEntry

_UPDATE_BODY_KEYS = frozenset({"doc", "doc_as_upsert"})


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@register("bulk", kind=MAPPERS)
class BulkActionMapper(Transformer):
    """Maps bulk file entries (action line + document line) to write operations."""

    def map_record(self, rec: BulkEntry, position: int) -> WriteOperation:
        index = _optional_str(rec.metadata.get("_index"))
        doc_id = _optional_str(rec.metadata.get("_id"))

        try:
            op_type = OpType.parse(rec.action)
        except ValueError:
            raise DecodeError("Invalid bulk request type", raw=rec.raw, position=rec.position) from None

        try:
            if op_type is OpType.INDEX:
                return WriteOperation.index_doc(rec.document, index=index, id=doc_id)
            if op_type is OpType.CREATE:
                return WriteOperation.create_doc(rec.document, index=index, id=doc_id)
            if op_type is OpType.UPDATE:
                try:
                    patch, upsert = self._update_body(rec.document)
                except ValueError as e:
                    raise DecodeError(str(e), raw=rec.document_raw, position=rec.document_position) from e
                return WriteOperation.update_doc(doc_id, patch, index=index, upsert=upsert)
            return WriteOperation.delete_doc(doc_id, index=index)
        except ValueError as e:
            raise DecodeError(str(e), raw=rec.raw, position=rec.position) from e

    @staticmethod
    def _update_body(document: Dict[str, Any]) -> tuple[Dict[str, Any], bool]:
        # standard bulk update body: {"doc": {...}, "doc_as_upsert": true}
        if isinstance(document.get("doc"), dict):
            unknown = sorted(set(document) - _UPDATE_BODY_KEYS)
            if unknown:
                raise ValueError(f"Update body mixes 'doc' with unsupported keys {unknown}")
            return document["doc"], bool(document.get("doc_as_upsert", True))
        return document, True


__all__ = ["BulkActionMapper"]
