import json
import logging
import sys

_HANDLER_NAME = "prophet-stdout"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Safe to call repeatedly: the existing handler is reconfigured instead of
    stacking duplicates.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        root.addHandler(handler)

    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))


def configure_from_settings() -> None:
    from prophet_app.core.config import get_settings

    settings = get_settings()
    configure_logging(settings.effective_log_level, settings.log_json)
