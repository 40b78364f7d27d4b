# esbatch/core/connection.py
from __future__ import annotations

from typing import Any, Dict, List

from elasticsearch import Elasticsearch

from .config import ConnectionConfig


def parse_headers(headers: List[str]) -> Dict[str, str]:
    """Turn ["Name: Value", ...] into a header dict."""
    parsed: Dict[str, str] = {}
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header '{header}', expected 'Name: Value'")
        parsed[name.strip()] = value.strip()
    return parsed


def create_client(cfg: ConnectionConfig) -> Elasticsearch:
    """Build an Elasticsearch client from the connection settings."""
    if not cfg.hosts:
        raise ValueError("At least one Elasticsearch host is required")

    kwargs: Dict[str, Any] = {
        "verify_certs": cfg.verify_certs,
        "request_timeout": cfg.request_timeout,
    }
    headers = parse_headers(cfg.headers)
    if headers:
        kwargs["headers"] = headers
    if cfg.api_key:
        kwargs["api_key"] = cfg.api_key
    # an explicit Authorization header wins over basic auth
    elif cfg.basic_auth and not any(h.lower() == "authorization" for h in headers):
        kwargs["basic_auth"] = cfg.basic_auth

    return Elasticsearch(cfg.hosts, **kwargs)


__all__ = ["create_client", "parse_headers"]
