# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

Levels, handlers, rotation and formats live in  etc/logging.conf.  This module
resolves the log-file path, patches it into the config text and applies it via
the standard-library fileConfig loader.

Two ready-made handles are exported:

    from core.logger import logger        # application events
    from core.logger import audit_logger  # membership / role / credential events

The log directory defaults to  <project root>/log  and can be moved with the
PARENTCIRCLE_LOG_DIR environment variable (the test-suite points it at a tmp dir).
"""

import configparser as _cp
import logging
import logging.config
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
# project root: backend/core/logger.py  →  ../../
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOG_DIR      = Path(os.environ.get("PARENTCIRCLE_LOG_DIR", _PROJECT_ROOT / "log"))
_LOG_FILE     = _LOG_DIR / "app.log"
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"

_LOG_DIR.mkdir(parents=True, exist_ok=True)

# ---------------------------------------------------------------------------
# Load & apply logging.conf
# ---------------------------------------------------------------------------
# logging.conf uses %(log_file)s as a placeholder for the rotating handler.
# RawConfigParser is required: the format strings contain %(asctime)s etc.
# which ConfigParser would try to interpolate and fail on.
_raw = _LOGGING_CONF.read_text(encoding="utf-8")
_raw = _raw.replace("%(log_file)s", str(_LOG_FILE).replace("\\", "/"))

_parser = _cp.RawConfigParser()
_parser.read_string(_raw)

logging.config.fileConfig(_parser, disable_existing_loggers=False)

# ---------------------------------------------------------------------------
# Module-level handles
# ---------------------------------------------------------------------------
logger = logging.getLogger("parentcircle")
audit_logger = logger.getChild("audit")
