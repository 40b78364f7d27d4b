# esbatch/storage/locations.py
from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse


def resolve_path(location: str | Path) -> Path:
    """
    Turn a source/sink location into a local path.
    Accepts plain paths and file:// URIs; other schemes are rejected.
    """
    if isinstance(location, Path):
        return location

    parsed = urlparse(location)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    # single letters are Windows drive letters, not schemes
    if parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"Unsupported location scheme '{parsed.scheme}' in '{location}'")
    return Path(location)


def to_uri(location: str | Path) -> str:
    return resolve_path(location).resolve().as_uri()


__all__ = ["resolve_path", "to_uri"]
