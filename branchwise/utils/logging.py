"""
Structured logging for Branchwise.

- Configurable level (DEBUG, INFO, WARNING, ERROR) via BRANCHWISE_LOG_LEVEL
- Writes to logs/branchwise.log plus a console handler for development
- Helpers that log one JSON payload per parse, validation, lint and diff run
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

# Default: project root / logs
LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
LOG_LEVEL = os.getenv("BRANCHWISE_LOG_LEVEL", "INFO").upper()


def configure_logging(
    level: str = LOG_LEVEL,
    log_dir: Optional[Path] = None,
    log_to_console: bool = True,
) -> None:
    """Configure root and branchwise loggers. Call once at app or CLI startup."""
    log_dir = log_dir or LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    level_value = getattr(logging, level.upper(), logging.INFO)

    file_handler = logging.FileHandler(log_dir / "branchwise.log", encoding="utf-8")
    file_handler.setLevel(level_value)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    root = logging.getLogger()
    root.setLevel(level_value)
    # Avoid duplicate handlers when reloading
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(file_handler)
    if log_to_console:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(level_value)
        console.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
        root.addHandler(console)

    logging.getLogger("branchwise").setLevel(level_value)


def _emit(logger: logging.Logger, level: int, label: str, payload: dict[str, Any]) -> None:
    payload["ts"] = datetime.utcnow().isoformat() + "Z"
    logger.log(level, "%s: %s", label, json.dumps(payload, default=str))


def log_parse_result(
    logger: logging.Logger,
    source: str,
    tree_names: list[str],
    duration_sec: Optional[float] = None,
) -> None:
    """Log which trees a document produced."""
    payload = {
        "event": "parse",
        "source": source,
        "tree_count": len(tree_names),
        "trees": tree_names,
        "duration_sec": duration_sec,
    }
    _emit(logger, logging.INFO, "Parse", payload)


def log_validation_result(
    logger: logging.Logger,
    tree_name: str,
    errors: int,
    warnings: int,
    duration_sec: Optional[float] = None,
) -> None:
    payload = {
        "event": "validation",
        "tree_name": tree_name,
        "errors": errors,
        "warnings": warnings,
        "duration_sec": duration_sec,
    }
    _emit(logger, logging.WARNING if errors else logging.INFO, "Validation", payload)


def log_lint_result(
    logger: logging.Logger,
    tree_name: str,
    errors: int,
    warnings: int,
    suggestions: int,
    source: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    payload = {
        "event": "lint",
        "tree_name": tree_name,
        "source": source,
        "errors": errors,
        "warnings": warnings,
        "suggestions": suggestions,
    }
    if extra:
        payload.update(extra)
    _emit(logger, logging.WARNING if errors else logging.INFO, "Lint", payload)


def log_diff_result(
    logger: logging.Logger,
    tree_name: str,
    added: int,
    removed: int,
    modified: int,
    root_changed: bool = False,
) -> None:
    payload = {
        "event": "diff",
        "tree_name": tree_name,
        "added": added,
        "removed": removed,
        "modified": modified,
        "root_changed": root_changed,
    }
    _emit(logger, logging.INFO, "Diff", payload)
