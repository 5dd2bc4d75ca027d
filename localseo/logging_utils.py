"""
Structured logging helpers for acquisition workflows.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        payload[key] = value.value if isinstance(value, Enum) else value
    logger.log(level, json.dumps(payload, default=str, sort_keys=True, ensure_ascii=False))


def configure_logging(level: int | str = logging.INFO) -> None:
    """
    Configure root logging for CLI entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
