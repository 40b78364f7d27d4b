# esbatch/cli.py
"""
Command line entry point.

Usage:
    esbatch bulk data.ndjson --host http://localhost:9200 --chunk 500
    esbatch load rows.ion --index my_index --id-key id
    esbatch scroll --index my_index --request '{"query": {"match_all": {}}}' --output hits.ion
    esbatch search --index my_index --request @query.json --fetch-type fetch_one
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from esbatch.core.config import (
    DEFAULT_CHUNK,
    ConnectionConfig,
    FetchType,
    JobConfig,
    LoadConfig,
    ScrollConfig,
    ThreadingConfig,
)
from esbatch.core.errors import EsbatchError
from esbatch.core.job_runner import JobRunner
from esbatch.core.metrics import LoggingMetrics
from esbatch.core.operations import OpType
from esbatch.core.serde import LineFormat
from esbatch.extractors.elasticsearch.extractor import ElasticsearchSearchClient
from esbatch.loaders.elasticsearch.loader import ElasticsearchLoader

logger = logging.getLogger(__name__)


def _request_arg(value: str) -> str:
    """A JSON search body, or @path to a file holding one."""
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="esbatch", description="Bulk load and export Elasticsearch documents")
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--host", dest="hosts", action="append", help="Elasticsearch URL, repeatable")
    common.add_argument("--user", help="basic auth username")
    common.add_argument("--password", help="basic auth password")
    common.add_argument("--api-key", help="API key")
    common.add_argument("--header", dest="headers", action="append", default=[], help="'Name: Value', repeatable")
    common.add_argument("--insecure", action="store_true", help="skip TLS certificate verification")
    common.add_argument("--timeout", type=float, default=30.0, help="request timeout in seconds")
    common.add_argument("--routing", help="shard routing value")

    sub = parser.add_subparsers(dest="command", required=True)

    bulk = sub.add_parser("bulk", parents=[common], help="load an Elasticsearch bulk file")
    bulk.add_argument("source", help="bulk file path or file:// URI (JSON or Ion lines)")
    bulk.add_argument("--index", help="default index for actions without _index")
    bulk.add_argument("--chunk", type=int, default=DEFAULT_CHUNK, help="operations per bulk request")
    bulk.add_argument("--prefetch", type=int, default=1, help="batches decoded ahead (0 = none)")

    load = sub.add_parser("load", parents=[common], help="load a row file into one index")
    load.add_argument("source", help="row file path or file:// URI (JSON or Ion lines)")
    load.add_argument("--index", required=True, help="target index")
    load.add_argument("--chunk", type=int, default=DEFAULT_CHUNK, help="operations per bulk request")
    load.add_argument("--prefetch", type=int, default=1, help="batches decoded ahead (0 = none)")
    load.add_argument("--id-key", help="row field used as document id")
    load.add_argument("--keep-id-key", action="store_true", help="keep the id field in the document")
    load.add_argument(
        "--op-type", type=OpType.parse, default=OpType.INDEX, help="index, create, update or delete"
    )

    for name, help_text in (("scroll", "export every hit of a search"), ("search", "run a single search")):
        p = sub.add_parser(name, parents=[common], help=help_text)
        p.add_argument("--index", dest="indexes", action="append", help="index to search, repeatable")
        p.add_argument(
            "--request",
            type=_request_arg,
            default='{"query": {"match_all": {}}}',
            help="JSON search body or @file",
        )
        p.add_argument("--output", help="sink path or file:// URI (default: a temp file)")
        p.add_argument("--format", type=LineFormat, default=LineFormat.ION, choices=[LineFormat.ION, LineFormat.JSON])

    sub.choices["search"].add_argument(
        "--fetch-type", type=FetchType, default=FetchType.FETCH, choices=list(FetchType)
    )
    return parser


def config_from_args(args: argparse.Namespace) -> JobConfig:
    basic_auth = (args.user, args.password or "") if args.user else None
    connection = ConnectionConfig(
        hosts=args.hosts or ["http://localhost:9200"],
        basic_auth=basic_auth,
        api_key=args.api_key,
        headers=list(args.headers),
        verify_certs=not args.insecure,
        request_timeout=args.timeout,
    )
    cfg = JobConfig(name=args.command, connection=connection)

    if args.command in ("bulk", "load"):
        cfg.threading = ThreadingConfig(prefetch_batches=args.prefetch)
        cfg.load = LoadConfig(chunk=args.chunk, index=args.index, routing=args.routing)
        if args.command == "load":
            cfg.load.id_key = args.id_key
            cfg.load.remove_id_key = not args.keep_id_key
            cfg.load.op_type = args.op_type
    else:
        cfg.scroll = ScrollConfig(
            indexes=args.indexes,
            request=args.request,
            routing=args.routing,
            output_format=args.format,
            fetch_type=getattr(args, "fetch_type", FetchType.FETCH),
        )
    return cfg


def run(args: argparse.Namespace) -> Any:
    cfg = config_from_args(args)
    runner = JobRunner(cfg, metrics=LoggingMetrics())

    if args.command in ("bulk", "load"):
        loader = ElasticsearchLoader(connection=cfg.connection, index=cfg.load.index, routing=cfg.load.routing)
        if args.command == "bulk":
            return runner.bulk_load(args.source, loader)
        return runner.load(args.source, loader)

    client = ElasticsearchSearchClient(connection=cfg.connection)
    if args.command == "scroll":
        return runner.scroll_export(client, args.output)
    return runner.search(client, args.output)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        output = run(args)
    except (EsbatchError, ValueError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1

    print(json.dumps(dataclasses.asdict(output), default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
