"""Structured logging for tool dispatch."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at application startup."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class StructuredToolLogger:
    """Structured logger for tool dispatch."""

    def log_dispatch(
        self,
        tool: str,
        outcome: str,
        latency_ms: float,
        *,
        error_code: str | None = None,
        input_summary: dict[str, Any] | None = None,
    ) -> None:
        """Log one dispatched tool call with structured data."""
        log_data: dict[str, Any] = {
            "tool": tool,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if error_code:
            log_data["error_code"] = error_code
        if input_summary:
            log_data["input_summary"] = input_summary

        log_msg = f"Tool dispatch: {tool} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
