"""Configuration loading and wiring helpers for dnstrust.

Brief:
  - read a YAML config file
  - validate it into a DnstrustConfig
  - build a ResolverApi backed by DnspythonEngine
  - apply the logging section when starting from a config file

Inputs:
  - YAML config paths or already-parsed mappings

Outputs:
  - DnstrustConfig models and ready-to-use ResolverApi instances
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..engine import DnspythonEngine
from ..resolver import DnsEngine, ResolverApi
from .config_schema import DnstrustConfig
from .logging_config import init_logging

logger = logging.getLogger(__name__)


def parse_config(raw: Optional[Dict[str, Any]]) -> DnstrustConfig:
    """Brief: Validate an already-parsed mapping.

    Inputs:
      - raw: Mapping with optional ``resolver`` and ``logging`` sections.

    Outputs:
      - DnstrustConfig.

    Raises:
      - ValueError: When the mapping does not match the schema.
    """

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration root must be a mapping")
    try:
        return DnstrustConfig.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid dnstrust configuration: {exc}") from exc


def load_config(config_path: str) -> DnstrustConfig:
    """Brief: Read and validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML configuration file.

    Outputs:
      - DnstrustConfig.

    Raises:
      - ValueError: Schema errors or a non-mapping document root.
      - OSError: The file cannot be read.
    """

    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    logger.debug("loaded configuration from %s", config_path)
    return parse_config(raw)


def build_resolver(
    cfg: Optional[DnstrustConfig] = None,
    *,
    engine: Optional[DnsEngine] = None,
) -> ResolverApi:
    """Brief: Wire a ResolverApi from configuration.

    Inputs:
      - cfg: DnstrustConfig (defaults apply when None).
      - engine: Optional DnsEngine override; DnspythonEngine otherwise.

    Outputs:
      - ResolverApi using cfg.resolver.ip_version.
    """

    cfg = cfg or DnstrustConfig()
    if engine is None:
        engine = DnspythonEngine(cfg.resolver)
    return ResolverApi(engine, ip_version=cfg.resolver.ip_version)


def resolver_from_file(
    config_path: str,
    *,
    engine: Optional[DnsEngine] = None,
) -> ResolverApi:
    """Brief: Load a config file, configure logging and build a ResolverApi.

    Inputs:
      - config_path: Path to the YAML configuration file.
      - engine: Optional DnsEngine override passed to build_resolver.

    Outputs:
      - ResolverApi; the root logger is set up from cfg.logging first.
    """

    cfg = load_config(config_path)
    init_logging(cfg.logging)
    logger.info("dnstrust resolver configured from %s", config_path)
    return build_resolver(cfg, engine=engine)
