"""Root logger setup for applications embedding dnstrust.

The library itself only creates module loggers; ``init_logging`` is applied
by ``config_parser.resolver_from_file`` or called directly by the host.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .config_schema import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog output without timestamps (syslog adds its own)."""

    def format(self, record):
        record.level_tag = _TAGS.get(record.levelno, f"[lvl{record.levelno}]")
        return f"{record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Formatter that adds bracketed lowercase level tags and UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        """Format the record's creation time as UTC ISO-8601 with Z suffix."""
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = _TAGS.get(record.levelno, f"[lvl{record.levelno}]")
        return super().format(record)


def _syslog_handler(syslog_cfg: Union[bool, Dict[str, Any]]) -> logging.Handler:
    """Build a SysLogHandler from ``True`` or an address/facility mapping."""

    options = syslog_cfg if isinstance(syslog_cfg, dict) else {}
    address = options.get("address", "/dev/log")
    if isinstance(address, list):
        # YAML has no tuples; [host, port] means a UDP destination.
        address = tuple(address)
    facility = getattr(
        logging.handlers.SysLogHandler,
        f"LOG_{str(options.get('facility', 'user')).upper()}",
        logging.handlers.SysLogHandler.LOG_USER,
    )
    handler = logging.handlers.SysLogHandler(address=address, facility=facility)
    handler.setFormatter(SyslogFormatter())
    return handler


def init_logging(cfg: Optional[LoggingConfig] = None) -> None:
    """
    Brief: Replace the root logger's handlers according to ``cfg``.

    Inputs:
      - cfg: LoggingConfig section; defaults (info, stderr only) when None.

    Outputs:
      - None. Syslog setup errors are logged as a warning, never raised.
    """
    cfg = cfg or LoggingConfig()

    root = logging.getLogger()
    root.setLevel(_LEVELS.get(cfg.level.lower(), logging.INFO))
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")
    if cfg.stderr:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    if cfg.file and cfg.file.strip():
        path = os.path.abspath(os.path.expanduser(cfg.file.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if cfg.syslog:
        try:
            root.addHandler(_syslog_handler(cfg.syslog))
        except (OSError, ValueError) as e:  # pragma: no cover - environment specific
            root.warning("Failed to configure syslog: %s", e)

    logging.captureWarnings(True)
