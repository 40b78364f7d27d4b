# esbatch/core/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .operations import OpType
from .serde import LineFormat

DEFAULT_CHUNK = 1000
DEFAULT_KEEP_ALIVE = "60s"


class FetchType(str, Enum):
    """How a single-page search exposes its hits."""

    FETCH = "fetch"
    FETCH_ONE = "fetch_one"
    STORE = "store"
    NONE = "none"


@dataclass
class ConnectionConfig:
    """Where the cluster is and how to reach it."""

    hosts: List[str] = field(default_factory=lambda: ["http://localhost:9200"])
    basic_auth: Optional[tuple[str, str]] = None
    api_key: Optional[str] = None
    # "Name: Value" strings sent on every request
    headers: List[str] = field(default_factory=list)
    verify_certs: bool = True
    request_timeout: float = 30.0


@dataclass
class ThreadingConfig:
    """Pipelining knobs for the runner."""

    prefetch_batches: int = 1  # batches decoded ahead of the network call; 0 = synchronous pull


@dataclass
class LoadConfig:
    """Ingestion settings shared by bulk-file and row-file loads."""

    chunk: int = DEFAULT_CHUNK  # operations per bulk request
    index: Optional[str] = None  # default target index
    id_key: Optional[str] = None  # row field used as document id
    remove_id_key: bool = True
    op_type: OpType = OpType.INDEX  # row loads only
    routing: Optional[str] = None


@dataclass
class ScrollConfig:
    """Export/search settings."""

    indexes: Optional[List[str]] = None  # None = all indices
    # JSON string or mapping
    request: Any = field(default_factory=lambda: {"query": {"match_all": {}}})
    routing: Optional[str] = None
    keep_alive: str = DEFAULT_KEEP_ALIVE
    fetch_type: FetchType = FetchType.FETCH
    output_format: LineFormat = LineFormat.ION


@dataclass
class JobConfig:
    """
    Everything one run needs. The concrete stages (sources, loaders, sinks) are
    built from it by the CLI or by your code; the runner only reads behavior knobs.
    """

    name: str = "job"
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    threading: ThreadingConfig = field(default_factory=ThreadingConfig)
    load: LoadConfig = field(default_factory=LoadConfig)
    scroll: ScrollConfig = field(default_factory=ScrollConfig)
    # Free-form: passed through to custom stages as needed
    options: Dict[str, Any] = field(default_factory=dict)
