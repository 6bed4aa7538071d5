"""Logging setup and structured domain-event logging."""

import logging
from typing import Any
from uuid import UUID

from backend.app.config import Settings, get_settings
from backend.app.db.context import RequestContext

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings.

    Safe to call more than once; the level is updated and no duplicate
    handlers are added.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)


class StructuredEventLogger:
    """Structured logger for domain events."""

    def log_event(
        self,
        ctx: RequestContext,
        event: str,
        trip_id: UUID,
        outcome: str = "success",
        **fields: Any,
    ) -> None:
        """Log a domain event with structured data."""
        log_data: dict[str, Any] = {
            "user_id": str(ctx.user_id),
            "trip_id": str(trip_id),
            "event": event,
            "outcome": outcome,
        }
        log_data.update({key: _jsonable(value) for key, value in fields.items()})

        log_msg = f"Trip event: {event} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


def _jsonable(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    return value


event_logger = StructuredEventLogger()
