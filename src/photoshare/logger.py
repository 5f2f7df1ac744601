import json
import logging
from datetime import UTC, datetime


class StructuredLogger:
    """Writes domain events as one JSON object per log line.

    The JSON is the log message, so events go through the same handlers and
    formatters as every other record.
    """

    def __init__(self, name: str = "photoshare.events"):
        self._logger = logging.getLogger(name)

    def log_event(self, event: str, **fields) -> None:
        """Emit an event, e.g. ``logger.log_event("photo_liked", photo_id=..., user_id=...)``.

        A dict passed as ``extra`` is merged into the top level of the payload.
        """
        payload = {"timestamp": datetime.now(UTC).isoformat(timespec="milliseconds"), "event": event}
        for key, value in fields.items():
            if key == "extra" and isinstance(value, dict):
                payload.update(value)
            else:
                payload[key] = value

        try:
            self._logger.info(json.dumps(payload, default=str))
        except (TypeError, ValueError):
            self._logger.info("%s %s", event, fields)

    def info(self, msg: str, *args, **kwargs):
        return self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        return self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        return self._logger.error(msg, *args, **kwargs)


logger = StructuredLogger()

__all__ = ["logger", "StructuredLogger"]
