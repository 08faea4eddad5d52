"""Logging and observability utilities for the feature summarizer.

This module provides structured logging, timing of pipeline operations,
and event hooks that host adapters can subscribe to.
"""

from __future__ import annotations

import json
import time
import logging as std_logging
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

ROOT_LOGGER = "feature_summarizer"


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Attach console (and optionally JSON file) handlers to the package logger."""
    logger = std_logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = std_logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        std_logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    if log_file:
        file_handler = std_logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("Feature summarizer logging initialized")


class JsonFormatter(std_logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: std_logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            entry.update(record.extra_fields)

        return json.dumps(entry, default=str)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PerformanceMonitor:
    """Collect duration metrics for pipeline operations."""

    def __init__(self):
        self.metrics: Dict[str, List[Dict[str, Any]]] = {}

    def record_metric(self, name: str, value: Any, tags: Optional[Dict[str, str]] = None) -> None:
        metric = {"timestamp": _now(), "name": name, "value": value, "tags": tags or {}}
        self.metrics.setdefault(name, []).append(metric)
        std_logging.getLogger(f"{ROOT_LOGGER}.performance").debug(
            f"Metric recorded: {name}={value}", extra={"extra_fields": metric}
        )

    def get_metrics(self, name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        if name:
            return {name: self.metrics.get(name, [])}
        return dict(self.metrics)

    def reset(self) -> None:
        self.metrics.clear()


performance_monitor = PerformanceMonitor()


def log_performance(operation_name: str):
    """Decorator recording how long an operation took, successful or not."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = std_logging.getLogger(f"{ROOT_LOGGER}.performance")
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                performance_monitor.record_metric(
                    f"{operation_name}_duration",
                    duration,
                    {"status": "error", "error_type": type(e).__name__},
                )
                logger.error(f"Failed operation: {operation_name} after {duration:.3f}s - {e}")
                raise

            duration = time.perf_counter() - start_time
            performance_monitor.record_metric(f"{operation_name}_duration", duration, {"status": "success"})
            logger.debug(f"Completed operation: {operation_name} in {duration:.3f}s")
            return result

        return wrapper

    return decorator


@contextmanager
def log_operation(operation_name: str, **extra_fields):
    """Log the start, completion or failure of a block of work."""
    logger = std_logging.getLogger(f"{ROOT_LOGGER}.operations")
    start_time = time.perf_counter()

    logger.debug(
        f"Starting operation: {operation_name}",
        extra={"extra_fields": {"operation": operation_name, "status": "started", **extra_fields}},
    )
    try:
        yield
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.error(
            f"Failed operation: {operation_name} after {duration:.3f}s - {e}",
            extra={"extra_fields": {
                "operation": operation_name,
                "status": "failed",
                "duration": duration,
                "error_type": type(e).__name__,
                "error_message": str(e),
                **extra_fields,
            }},
        )
        raise

    duration = time.perf_counter() - start_time
    logger.info(
        f"Completed operation: {operation_name} in {duration:.3f}s",
        extra={"extra_fields": {
            "operation": operation_name,
            "status": "completed",
            "duration": duration,
            **extra_fields,
        }},
    )


class ObservabilityHooks:
    """Named event callbacks fired while reports are produced."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger(f"{ROOT_LOGGER}.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def unregister_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        callbacks = self.hooks.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def trigger_hooks(self, event_type: str, **data) -> None:
        for hook in list(self.hooks.get(event_type, [])):
            try:
                hook(**data)
            except Exception as e:
                self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_event(self, event_type: str, **data) -> None:
        """Log an event and notify its subscribers."""
        event_data = {"timestamp": _now(), "event_type": event_type, **data}
        self.logger.info(f"Report event: {event_type}", extra={"extra_fields": event_data})
        self.trigger_hooks(event_type, **{k: v for k, v in event_data.items() if k != "event_type"})


observability_hooks = ObservabilityHooks()


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields) -> None:
    """Log an error together with what the pipeline was doing at the time."""
    logger = std_logging.getLogger(f"{ROOT_LOGGER}.errors")
    error_data = {
        "timestamp": _now(),
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context,
        **extra_fields,
    }
    logger.error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra={"extra_fields": error_data},
        exc_info=error,
    )


def log_feature_found(node_id: str, display_name: str) -> None:
    observability_hooks.log_event("feature_found", node_id=node_id, display_name=display_name)


def log_report_written(path: str, feature_name: str, size: int) -> None:
    observability_hooks.log_event("report_written", path=path, feature_name=feature_name, size=size)


def log_reports_generated(report_count: int, aborted_count: int) -> None:
    observability_hooks.log_event("reports_generated", report_count=report_count, aborted_count=aborted_count)
