"""Structured logging for a machine-parseable audit trail of each run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TextIO

import structlog
from structlog.processors import JSONRenderer
from structlog.typing import Processor

_configured = False
_logger: structlog.BoundLogger | None = None
_file_handle: TextIO | None = None


def configure_run_logging(log_dir: str) -> Path:
    """One-time setup per process. Writes JSON lines to {log_dir}/analysis.jsonl."""
    global _configured, _logger, _file_handle
    app_log_path = Path(log_dir) / "analysis.jsonl"
    if _configured:
        return app_log_path
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    _file_handle = open(app_log_path, "a", encoding="utf-8")
    file_handle = _file_handle

    def _file_logger_factory(*args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file_handle)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        JSONRenderer(),
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=_file_logger_factory,
        cache_logger_on_first_use=True,
    )
    _configured = True
    _logger = structlog.get_logger()
    return app_log_path


def reset_run_logging() -> None:
    """Close the audit file and forget the configuration."""
    global _configured, _logger, _file_handle
    if _file_handle is not None:
        _file_handle.close()
    _file_handle = None
    _logger = None
    _configured = False
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def bind_run(run_id: str, input_path: str | None = None) -> None:
    """Bind run context so every event includes run_id (and the input file)."""
    context: dict[str, Any] = {"run_id": run_id}
    if input_path is not None:
        context["input_path"] = input_path
    structlog.contextvars.bind_contextvars(**context)


def log_stage(stage: str, action: str, **summary: Any) -> None:
    """Log a stage transition (action: start|done)."""
    if _logger is not None:
        _logger.info("stage", stage=stage, action=action, **summary)


def log_analysis(
    section: str,
    key: str,
    status: str,
    *,
    n: int | None = None,
    message: str | None = None,
) -> None:
    """Log the outcome of one analysis."""
    payload: dict[str, Any] = {"section": section, "key": key, "status": status}
    if n is not None:
        payload["n"] = n
    if message:
        payload["message"] = message
    if _logger is not None:
        _logger.info("analysis", **payload)


def log_conversion_failures(counts: dict[str, int]) -> None:
    if _logger is not None and counts:
        _logger.info("conversion_failures", **counts)


def load_events_from_jsonl(path: str) -> list[dict[str, Any]]:
    """Read an analysis.jsonl file; lines that fail to parse are skipped."""
    events: list[dict[str, Any]] = []
    log_path = Path(path)
    if not log_path.exists():
        return events
    for line in log_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(entry, dict):
            events.append(entry)
    return events
