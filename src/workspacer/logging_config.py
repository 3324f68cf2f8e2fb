# =============================================================================
# Structured Logging Setup (JSONL format)
# =============================================================================

import json
import os
import sys
import traceback
from contextvars import ContextVar
from pathlib import Path

import platformdirs
from loguru import logger

# Correlation ID for one CLI invocation
trace_id_var: ContextVar[str] = ContextVar('trace_id', default=None)

LOG_LEVEL_ENV = "WORKSPACER_LOG_LEVEL"


def json_sink(message):
    """JSONL sink - writes one record per line to stderr."""
    record = message.record
    log_entry = {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        "level": record["level"].name.lower(),
        "component": record["function"],
        "operation": record["extra"].get("operation", "unknown"),
        "operation_status": record["extra"].get("status", None),
        "trace_id": record["extra"].get("trace_id") or trace_id_var.get(),
        "message": record["message"],
        "context": {k: v for k, v in record["extra"].items()
                   if k not in ("operation", "status", "trace_id", "metrics")},
        "metrics": record["extra"].get("metrics", {}),
        "error": None
    }

    if record["exception"]:
        exc_type, exc_value, exc_tb = record["exception"]
        tb_lines = []
        if exc_tb:
            tb_lines = traceback.format_tb(exc_tb)

        log_entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "Unknown error",
            "traceback_lines": tb_lines
        }

    sys.stderr.write(json.dumps(log_entry, default=str) + "\n")


def setup_logger(console_level: str | None = None, log_to_file: bool = True):
    """Configure Loguru for machine-readable JSONL output."""
    logger.remove()

    # The picker owns the screen and CLI dispatch prints user-facing errors,
    # so the stderr sink is only installed when a level is asked for
    level = console_level or os.environ.get(LOG_LEVEL_ENV)
    if level:
        logger.add(
            json_sink,
            level=level.upper()
        )

    if log_to_file:
        # Linux: ~/.local/state/workspacer/log/
        # Windows: %LOCALAPPDATA%\workspacer\Logs\
        log_dir = Path(platformdirs.user_log_dir(
            appname="workspacer",
            ensure_exists=True
        ))

        logger.add(
            str(log_dir / "workspacer.jsonl"),
            format="{message}",
            serialize=True,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG"
        )

    return logger
