"""Logging setup for SiteNav.

The console gets rich output, or JSON lines when ``use_json`` is set; an
optional log file always gets JSON lines. Crawl, cache and search records pass
their context (origin, page and section counts, cache result, query) through
``extra`` so JSON output carries it as fields.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

CONTEXT_FIELDS = ("origin", "url", "query", "pages", "sections", "results", "cache_result", "duration_ms")

QUIET_LOGGERS = ("uvicorn.access", "aiohttp.access", "asyncio")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with known context fields lifted to the top level."""

    def __init__(self, service_name: str = "sitenav"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO",
                  log_file: Optional[str] = None,
                  use_json: bool = False,
                  service_name: str = "sitenav") -> None:
    """Replace the root handlers.

    Args:
        level: Log level name
        log_file: Optional path that receives JSON lines
        use_json: Emit JSON on stdout instead of rich console output
        service_name: Value of the ``service`` field in JSON output
    """
    handlers: List[logging.Handler] = []

    if use_json:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(JSONFormatter(service_name))
    else:
        # stderr keeps CLI output on stdout machine-readable
        console_handler = RichHandler(console=Console(stderr=True), show_path=False,
                                      rich_tracebacks=True)
    handlers.append(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter(service_name))
        handlers.append(file_handler)

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
