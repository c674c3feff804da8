import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

LOG_FORMAT = "%(message)s"


def configure_logging(
    level: str = "INFO", log_file: Optional[Path] = None, log_json: bool = False
):
    """Route structlog through the stdlib :mod:`logging` module.

    Logs go to stderr, and additionally to `log_file` if given. With
    `log_json` entries are rendered as JSON lines instead of key=value pairs.
    """
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        handlers.append(logging.FileHandler(str(log_file)))

    logging.basicConfig(format=LOG_FORMAT, level=level.upper(), handlers=handlers, force=True)

    renderer = (
        structlog.processors.JSONRenderer()
        if log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
