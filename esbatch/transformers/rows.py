# esbatch/transformers/rows.py
from __future__ import annotations

from esbatch.core.config import LoadConfig
from esbatch.core.errors import DecodeError
from esbatch.core.extractor_base import Record
from esbatch.core.operations import OpType, WriteOperation
from esbatch.core.registry import MAPPERS, register
from esbatch.core.transformer_base import Transformer


@register("rows", kind=MAPPERS)
class RowOperationMapper(Transformer):
    """
    Maps plain rows to write operations of a single, run-wide kind.
    The id comes from `id_key` when set (and is stripped from the body unless
    `remove_id_key` is False); otherwise the server assigns one.
    """

    def __init__(self, cfg: LoadConfig | None = None) -> None:
        self.cfg = cfg or LoadConfig()
        if self.cfg.op_type in (OpType.UPDATE, OpType.DELETE) and not self.cfg.id_key:
            raise ValueError(f"An id key is required for '{self.cfg.op_type.value}' row loads")

    def map_record(self, rec: Record, position: int) -> WriteOperation:
        document = dict(rec)
        doc_id = None

        if self.cfg.id_key:
            if self.cfg.id_key not in document:
                raise DecodeError(f"Missing id key '{self.cfg.id_key}' on row", position=position)
            value = document[self.cfg.id_key]
            if value is None:
                raise DecodeError(f"Null id key '{self.cfg.id_key}' on row", position=position)
            doc_id = str(value)
            if self.cfg.remove_id_key:
                del document[self.cfg.id_key]

        op_type = self.cfg.op_type
        if op_type is OpType.DELETE:
            return WriteOperation.delete_doc(doc_id, index=self.cfg.index)
        if op_type is OpType.UPDATE:
            return WriteOperation.update_doc(doc_id, document, index=self.cfg.index)
        return WriteOperation(op_type, index=self.cfg.index, id=doc_id, document=document)


__all__ = ["RowOperationMapper"]
