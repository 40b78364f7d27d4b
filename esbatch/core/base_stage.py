# esbatch/core/base_stage.py
from __future__ import annotations

from abc import ABC
from typing import Any


class Stage(ABC):  # noqa: B024
    """
    Lifecycle base for every pipeline stage (sources, mappers, loaders, sinks, search clients).
    Subclasses override open()/close() when they hold a file handle or a client.
    The runner calls close() on every exit path, so close() must tolerate a failed open().
    """

    def open(self) -> None:  # noqa: B027
        """Per-run init. Called once before the first record is read or written."""
        pass

    def close(self) -> None:  # noqa: B027
        """Per-run teardown. Called once after the run ends (success or failure)."""
        pass

    def __enter__(self) -> "Stage":
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["Stage"]
