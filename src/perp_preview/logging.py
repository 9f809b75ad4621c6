"""structlog setup for services that embed the engine.

The engine itself never configures logging; it only emits events through
``get_logger``. An embedding service calls ``setup_logging`` once at startup,
usually with its ``AppSettings``, and may bind the account and market it is
reconciling so every engine event carries them.
"""

import logging
import os

import structlog

from perp_preview.config import AppSettings


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(settings: AppSettings | None = None, log_format: str | None = None) -> None:
    """Route engine events through stdlib logging with structlog rendering.

    Args:
        settings: Source of ``log_level``. Defaults to ``AppSettings()``.
        log_format: "json" or "console". Falls back to the LOG_FORMAT
            environment variable, then "console".
    """
    settings = settings or AppSettings()
    log_format = (log_format or os.environ.get("LOG_FORMAT", "console")).lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    # Only the package logger is touched; the host keeps its own root handlers.
    engine_logger = logging.getLogger("perp_preview")
    engine_logger.handlers.clear()
    engine_logger.addHandler(handler)
    engine_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    engine_logger.propagate = False


def bind_position_context(market: str, account: str) -> None:
    """Attach market and account to every event logged in this context."""
    structlog.contextvars.bind_contextvars(market=market, account=account)


def clear_position_context() -> None:
    structlog.contextvars.unbind_contextvars("market", "account")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
