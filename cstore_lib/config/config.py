"""Server configuration for C-Store.

The configuration lives in a human-editable YAML file (by default
`data/config/server_config.yml`). Missing files fall back to defaults so a
fresh checkout starts with the document backend under `./data`.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("data/config/server_config.yml")
CONFIG_ENV = "CSTORE_CONFIG"


@dataclass
class ServerConfig:
    storage_backend: str = "document"
    data_dir: str = "data"
    document_file: str = "data.json"
    database_file: str = "data.db"
    log_level: str = "WARNING"
    host: str = "0.0.0.0"
    port: int = 3000


def config_path(path: Optional[str | Path] = None, environ: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the config path: explicit argument, then env, then default."""
    if path:
        return Path(path)
    env = (os.environ if environ is None else environ).get(CONFIG_ENV)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def from_mapping(data: Mapping[str, Any]) -> ServerConfig:
    known = {f.name for f in fields(ServerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown server config keys: %s", ", ".join(unknown))
    values = {k: v for k, v in data.items() if k in known and v is not None}
    if "port" in values:
        values["port"] = int(values["port"])
    return ServerConfig(**values)


def apply_env(cfg: ServerConfig, environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    if env.get("CSTORE_STORAGE_BACKEND"):
        overrides["storage_backend"] = env["CSTORE_STORAGE_BACKEND"]
    if env.get("CSTORE_DATA_DIR"):
        overrides["data_dir"] = env["CSTORE_DATA_DIR"]
    if env.get("PORT"):
        overrides["port"] = int(env["PORT"])
    return replace(cfg, **overrides) if overrides else cfg


def load_config(path: Optional[str | Path] = None, environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Load the server configuration, applying environment overrides.

    Raises ValueError when the file exists but is not a YAML mapping.
    """
    cfg_path = config_path(path, environ)
    cfg = ServerConfig()
    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"invalid server config {cfg_path}: parse error") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"invalid server config {cfg_path}: expected mapping")
        cfg = from_mapping(data)
        logger.debug("Loaded server config from %s", cfg_path)
    else:
        logger.debug("No server config at %s; using defaults", cfg_path)
    return apply_env(cfg, environ)


def render_template(cfg: Optional[ServerConfig] = None) -> str:
    """Return the YAML text of `cfg` (defaults when omitted)."""
    return yaml.safe_dump(asdict(cfg or ServerConfig()), sort_keys=False)
