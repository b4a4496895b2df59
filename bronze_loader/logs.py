"""structlog configuration for the loader."""

import logging

import structlog


def configure_logging(fmt: str = "json", level: int = logging.INFO) -> None:
    """
    Configure structlog for a loader run.

    Args:
        fmt: "json" for one JSON object per event, "console" for
            human-readable key=value lines
        level: Minimum level to emit
    """
    processors = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # ConsoleRenderer formats tracebacks itself; JSON needs them as text
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
