# esbatch/core/operations.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class OpType(str, Enum):
    """Kind of a bulk write operation. The value is the bulk action keyword."""

    INDEX = "index"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: str) -> "OpType":
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Invalid operation type '{value}'") from None


@dataclass(frozen=True)
class WriteOperation:
    """
    One document-level write of a bulk request.
    - index: target index; None falls back to the loader's default index
    - id: document id; None lets the server assign one (not allowed for UPDATE/DELETE)
    - document: full body for INDEX/CREATE, partial patch for UPDATE, None for DELETE
    - doc_as_upsert: UPDATE only, create the document from the patch when missing
    """

    op_type: OpType
    index: Optional[str] = None
    id: Optional[str] = None
    document: Optional[Dict[str, Any]] = None
    doc_as_upsert: bool = False

    def __post_init__(self) -> None:
        if self.op_type is OpType.DELETE:
            if self.document is not None:
                raise ValueError("A delete operation carries no document")
        elif self.document is None:
            raise ValueError(f"A {self.op_type.value} operation requires a document")

        if self.op_type in (OpType.UPDATE, OpType.DELETE) and self.id is None:
            raise ValueError(f"A {self.op_type.value} operation requires an id")

        if self.doc_as_upsert and self.op_type is not OpType.UPDATE:
            raise ValueError("doc_as_upsert only applies to update operations")

    @classmethod
    def index_doc(
        cls, document: Dict[str, Any], index: Optional[str] = None, id: Optional[str] = None
    ) -> "WriteOperation":
        return cls(OpType.INDEX, index=index, id=id, document=document)

    @classmethod
    def create_doc(
        cls, document: Dict[str, Any], index: Optional[str] = None, id: Optional[str] = None
    ) -> "WriteOperation":
        return cls(OpType.CREATE, index=index, id=id, document=document)

    @classmethod
    def update_doc(
        cls, id: str, patch: Dict[str, Any], index: Optional[str] = None, upsert: bool = True
    ) -> "WriteOperation":
        return cls(OpType.UPDATE, index=index, id=id, document=patch, doc_as_upsert=upsert)

    @classmethod
    def delete_doc(cls, id: str, index: Optional[str] = None) -> "WriteOperation":
        return cls(OpType.DELETE, index=index, id=id)

    def metadata(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {}
        if self.index is not None:
            meta["_index"] = self.index
        if self.id is not None:
            meta["_id"] = self.id
        return meta

    def to_actions(self) -> List[Dict[str, Any]]:
        """Bulk API lines for this operation: the action line, then the body line if any."""
        action = {self.op_type.value: self.metadata()}

        if self.op_type is OpType.INDEX or self.op_type is OpType.CREATE:
            return [action, self.document]
        if self.op_type is OpType.UPDATE:
            body: Dict[str, Any] = {"doc": self.document}
            if self.doc_as_upsert:
                body["doc_as_upsert"] = True
            return [action, body]
        if self.op_type is OpType.DELETE:
            return [action]

        raise ValueError(f"Unsupported operation type {self.op_type!r}")


__all__ = ["OpType", "WriteOperation"]
