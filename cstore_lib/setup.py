"""Command-line setup helpers for C-Store.

Provides CLI parsing and the merge of CLI options over the YAML server
configuration. The module contains only CLI and config logic; the
server itself is started by `cstore.py`.
"""
from __future__ import annotations
import argparse
from dataclasses import replace
from typing import Iterable, Optional

from cstore_lib.config.config import ServerConfig, load_config
from cstore_lib.storage import BACKENDS


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cstore", description="Namespaced key-value storage server")
    p.add_argument("--config", help="Path to the YAML server config (default: data/config/server_config.yml)")
    p.add_argument("--backend", choices=BACKENDS, help="Storage backend to use")
    p.add_argument("--data-dir", help="Directory holding the document or database file")
    p.add_argument("--host", help="Bind address")
    p.add_argument("--port", type=int, help="Bind port")
    p.add_argument("--log-level", help="Root log level (DEBUG, INFO, WARNING, ...)")
    p.add_argument("--print-template", action="store_true", help="Print the default YAML config template to stdout and exit")
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = get_parser()
    if argv is not None:
        argv = list(argv)
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Load the YAML config then apply CLI overrides that were given."""
    cfg = load_config(args.config)
    overrides = {}
    if args.backend:
        overrides["storage_backend"] = args.backend
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    return replace(cfg, **overrides) if overrides else cfg
